"""Locate the fixture Maven projects under ``tests/projects/``."""

from __future__ import annotations

from pathlib import Path


def locate_home() -> Path:
    """``tests/projects``"""
    return Path(__file__).resolve().parents[1] / "projects"


def locate_project_dir(name: str) -> Path:
    path = locate_home() / name
    if not path.is_dir():
        raise FileNotFoundError(f"Fixture project not found: {path}")
    return path


def locate_project_pom(name: str) -> Path:
    return locate_project_dir(name) / "pom.xml"
