from __future__ import annotations

from ._utils import iter_python_files, matches_prefix, package_root, parse_imports


def _offenders(subdir: str, forbidden: tuple[str, ...]) -> list[str]:
    root = package_root()
    found: list[str] = []
    for file_path in iter_python_files(root / subdir):
        rel = file_path.relative_to(root).as_posix()
        for item in parse_imports(file_path):
            if any(matches_prefix(item.module, prefix) for prefix in forbidden):
                found.append(f"{rel}:{item.line}: forbidden import '{item.module}'")
    return found


def test_services_do_not_import_cli() -> None:
    offenders = _offenders("services", ("relkit.cli", "typer"))
    assert not offenders, "services -> cli dependency violations:\n" + "\n".join(offenders)


def test_core_stays_at_the_bottom() -> None:
    offenders = _offenders("core", ("relkit.services", "relkit.cli", "relkit.git", "relkit.output"))
    assert not offenders, "core dependency violations:\n" + "\n".join(offenders)


def test_rich_is_only_used_by_the_console() -> None:
    root = package_root()
    offenders: list[str] = []
    for file_path in iter_python_files(root):
        rel = file_path.relative_to(root).as_posix()
        if rel == "output/console.py":
            continue
        for item in parse_imports(file_path):
            if matches_prefix(item.module, "rich"):
                offenders.append(f"{rel}:{item.line}: direct rich import '{item.module}'")
    assert not offenders, "Direct rich usage violations:\n" + "\n".join(offenders)
