"""
Publish Tool - Pushes the build directory to a GitHub Pages branch

The GH_PAGES_BRANCH of GH_PAGES_REMOTE is cloned (or started fresh when it
does not exist yet), its tree is replaced with the build output and one
commit is pushed on top, so the branch keeps its history. Dotfiles in the
build directory are not published.
"""
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Any, Dict, List

import config
from builders.schemas import BuildMode, PathTable
from .common import BuilderError


def _git(args: List[str], cwd: Path, check: bool = True) -> subprocess.CompletedProcess:
    try:
        proc = subprocess.run(["git", *args], cwd=cwd, capture_output=True, text=True)
    except FileNotFoundError as e:
        raise BuilderError("git executable not found") from e
    if check and proc.returncode != 0:
        raise BuilderError(f"git {' '.join(args)} failed: {proc.stderr.strip()}")
    return proc


def _identity(root: Path) -> List[str]:
    """Reuse the project's git identity for the publish commit"""
    flags = []
    for key in ("user.name", "user.email"):
        value = _git(["config", "--get", key], cwd=root, check=False).stdout.strip()
        if value:
            flags += ["-c", f"{key}={value}"]
    return flags


def _skip_dotfiles(directory: str, names: List[str]) -> List[str]:
    return [name for name in names if name.startswith(".")]


def _checkout_branch(remote_url: str, branch: str, workdir: Path) -> Path:
    """Clone the publish branch into workdir/site, or start an empty one"""
    site = workdir / "site"
    exists = _git(["ls-remote", "--exit-code", "--heads", remote_url, branch], cwd=workdir, check=False)
    if exists.returncode == 0:
        _git(["clone", "--quiet", "--single-branch", "--branch", branch, remote_url, str(site)], cwd=workdir)
    else:
        site.mkdir()
        _git(["init", "--quiet"], cwd=site)
        _git(["checkout", "--quiet", "-b", branch], cwd=site)
    return site


def _replace_tree(site: Path, build_dir: Path) -> int:
    for entry in site.iterdir():
        if entry.name == ".git":
            continue
        if entry.is_dir():
            shutil.rmtree(entry)
        else:
            entry.unlink()
    shutil.copytree(build_dir, site, ignore=_skip_dotfiles, dirs_exist_ok=True)
    return sum(1 for p in site.rglob("*") if p.is_file() and ".git" not in p.relative_to(site).parts)


def publish_gh_pages(table: PathTable, mode: BuildMode) -> Dict[str, Any]:
    """
    Publish build/ to the gh-pages branch

    Args:
        table: Path table
        mode: Build mode

    Returns:
        Dictionary with remote, branch, published file count and whether
        a new commit was pushed
    """
    build_dir = table.build_path
    if not build_dir.is_dir() or not any(build_dir.iterdir()):
        raise BuilderError(f"Nothing to publish: {build_dir} is empty")

    remote_url = _git(["config", "--get", f"remote.{config.GH_PAGES_REMOTE}.url"], cwd=table.root).stdout.strip()
    identity = _identity(table.root)
    branch = config.GH_PAGES_BRANCH

    with tempfile.TemporaryDirectory(prefix="gh-pages-") as tmp:
        site = _checkout_branch(remote_url, branch, Path(tmp))
        published = _replace_tree(site, build_dir)
        _git(["add", "--all"], cwd=site)

        # exit code 1 means the index differs from HEAD
        changed = _git(["diff", "--cached", "--quiet"], cwd=site, check=False).returncode != 0
        if changed:
            _git([*identity, "commit", "--quiet", "-m", config.GH_PAGES_MESSAGE], cwd=site)
            _git(["push", "--quiet", remote_url, f"{branch}:{branch}"], cwd=site)

    return {
        "status": "success",
        "outputs": [],
        "skipped": [],
        "remote": remote_url,
        "branch": branch,
        "published_files": published,
        "changed": changed,
    }


__all__ = ["publish_gh_pages"]
