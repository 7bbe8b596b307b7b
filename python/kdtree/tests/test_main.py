import pytest
from kdtree_point import points_from_array
from main import create_tree, main, parse_args


def test_parse_args_defaults():
    args = parse_args([])

    assert args.count == 10
    assert args.seed == 19
    assert args.query == [0.5, 0.5]
    assert not args.incremental
    assert args.viewer == "matplotlib"
    assert args.log_level == "WARNING"


def test_parse_args_options():
    args = parse_args(["-n", "50", "-q", "0.7", "0.28", "-i", "-v", "none", "--log-level", "DEBUG"])

    assert args.count == 50
    assert args.query == [0.7, 0.28]
    assert args.incremental
    assert args.viewer == "none"
    assert args.log_level == "DEBUG"


def test_parse_args_rejects_empty_point_set():
    with pytest.raises(SystemExit):
        parse_args(["--count", "0"])


@pytest.mark.parametrize("incremental", [False, True])
def test_create_tree(incremental, node_counter):
    points = points_from_array([[0.1, 0.2], [0.5, 0.5], [0.9, 0.1], [0.3, 0.8]])
    root = create_tree(points, incremental)

    assert node_counter(root) == 4


def test_main_without_viewer(capsys):
    main(["--count", "100", "--viewer", "none", "--incremental"])

    out = capsys.readouterr().out
    assert "tree height:" in out
    assert "nearest: [" in out
