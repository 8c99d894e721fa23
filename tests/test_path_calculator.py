import pytest

from app.catalog.services.path_calculator import CategorySnapshot, PathInfo, calculate_path_info, rebase_descendant


def snapshot(id: str, path: str, path_ids: list[str], parent_id: str | None = None) -> CategorySnapshot:
    return CategorySnapshot(
        id=id,
        slug=path.rsplit("/", 1)[-1],
        path=path,
        path_ids=path_ids,
        level=len(path_ids),
        parent_id=parent_id,
    )


def test_root_target():
    assert calculate_path_info(None, "phones") == PathInfo(path="/phones", path_ids=[], level=0)


def test_child_of_root():
    home = snapshot("home", "/home", [])
    assert calculate_path_info(home, "phones") == PathInfo(path="/home/phones", path_ids=["home"], level=1)


def test_child_of_nested_parent():
    phones = snapshot("phones", "/electronics/phones", ["electronics"], parent_id="electronics")
    info = calculate_path_info(phones, "android")

    assert info.path == "/electronics/phones/android"
    assert info.path_ids == ["electronics", "phones"]
    assert info.level == 2
    assert info.level == len(info.path_ids)


def test_calculation_does_not_alias_parent_ids():
    parent_ids = ["electronics"]
    phones = snapshot("phones", "/electronics/phones", parent_ids)

    info = calculate_path_info(phones, "android")
    info.path_ids.append("mutated")

    assert parent_ids == ["electronics"]
    assert calculate_path_info(phones, "android").path_ids == ["electronics", "phones"]


def test_rebase_grandchild_under_new_root():
    """Scenario: phones moves from /electronics to /home; android follows."""
    phones = snapshot("phones", "/electronics/phones", ["electronics"], parent_id="electronics")
    new_info = calculate_path_info(snapshot("home", "/home", []), "phones")

    rebased = rebase_descendant("/electronics/phones/android", ["electronics", "phones"], 2, phones, new_info)

    assert rebased == PathInfo(path="/home/phones/android", path_ids=["home", "phones"], level=2)


def test_rebase_preserves_deep_suffix_when_moving_up():
    moved = snapshot("c", "/a/b/c", ["a", "b"], parent_id="b")
    new_info = calculate_path_info(None, "c")

    rebased = rebase_descendant("/a/b/c/d/e", ["a", "b", "c", "d"], 4, moved, new_info)

    assert rebased.path == "/c/d/e"
    assert rebased.path_ids == ["c", "d"]
    assert rebased.level == 2


def test_rebase_rejects_rows_outside_subtree():
    moved = snapshot("c", "/a/b/c", ["a", "b"])
    with pytest.raises(ValueError):
        rebase_descendant("/x/y", ["x"], 1, moved, PathInfo(path="/c"))
