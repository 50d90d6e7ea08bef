"""File scanner: discover declaration files across a project tree."""

from pathlib import Path

# Dependency caches and tool output that never hold a project's own declaration
SKIP_DIRS = {
    ".git", "node_modules", "bower_components", "jspm_packages", ".pnpm-store",
    ".yarn", ".npm", "__pycache__", ".venv", "venv", ".tox", ".cache",
    ".next", ".nuxt", "coverage",
}


def scan_declaration_files(root: Path, file_name: str) -> list[Path]:
    """Recursively find every file called *file_name* under *root*.

    Skips dependency-cache directories. Results are sorted by path.
    """
    files = []
    for item in root.rglob(file_name):
        if item.is_file() and _should_include(item.relative_to(root)):
            files.append(item)
    return sorted(files)


def _should_include(relative: Path) -> bool:
    """Check that no directory component is a skipped directory."""
    for part in relative.parts[:-1]:
        if part in SKIP_DIRS:
            return False
    return True
