"""Build-context resolution.

Turns an image's ``build`` field into the Dockerfile path and context
directory handed to the container build tool. With ``df`` the Dockerfile
and ``ctx`` the context from the document, both possibly empty:

=======  =======  =======================  ==================
df set   ctx set  dockerfile               context
=======  =======  =======================  ==================
yes      yes      root/df                  root/ctx
yes      no       root/df                  root/dirname(df)
no       yes      root/ctx/Dockerfile      root/ctx
no       no       root/Dockerfile          root
=======  =======  =======================  ==================

Build args, target stage and cache sources pass through unchanged. The
resolver is pure path arithmetic: it never touches the filesystem.
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass

from workload_spine.core.settings import get_settings
from workload_spine.manifest.models import Image
from workload_spine.manifest.types import DOCKERFILE_DEFAULT_NAME
from workload_spine.manifest.unions import DockerBuildArgs


@dataclass(frozen=True)
class BuildConfig:
    """Arguments for one container build invocation."""

    dockerfile: str
    context: str
    args: dict[str, str] | None = None
    target: str | None = None
    cache_from: tuple[str, ...] | None = None


def join_path(*parts: str) -> str:
    """Join and clean path components.

    Empty components are skipped and an absolute component is appended
    rather than replacing what came before it.
    """
    joined = "/".join(part for part in parts if part)
    if not joined:
        return ""
    cleaned = posixpath.normpath(joined)
    if cleaned.startswith("//"):
        cleaned = "/" + cleaned.lstrip("/")
    return cleaned


def _build_args(image: Image) -> DockerBuildArgs:
    if isinstance(image.build, DockerBuildArgs):
        return image.build
    return DockerBuildArgs()


def dockerfile(image: Image) -> str:
    """Dockerfile path from the document, or ``""``.

    ``build.dockerfile`` wins over a bare ``build: <path>`` string.
    """
    args = _build_args(image)
    if args.dockerfile is not None:
        return args.dockerfile
    if isinstance(image.build, str):
        return image.build
    return ""


def context(image: Image) -> str:
    return _build_args(image).context or ""


def build_config(image: Image, root_directory: str | None = None) -> BuildConfig:
    """Resolve the Dockerfile and context for *image* under *root_directory*.

    *root_directory* defaults to the configured workspace root.
    """
    root = root_directory if root_directory is not None else get_settings().workspace_root
    df = dockerfile(image)
    ctx = context(image)

    if df and ctx:
        resolved_df, resolved_ctx = join_path(root, df), join_path(root, ctx)
    elif df:
        resolved_df, resolved_ctx = join_path(root, df), join_path(root, posixpath.dirname(df))
    elif ctx:
        resolved_df, resolved_ctx = join_path(root, ctx, DOCKERFILE_DEFAULT_NAME), join_path(root, ctx)
    else:
        resolved_df, resolved_ctx = join_path(root, DOCKERFILE_DEFAULT_NAME), join_path(root) or root

    args = _build_args(image)
    return BuildConfig(
        dockerfile=resolved_df,
        context=resolved_ctx,
        args=dict(args.args) if args.args is not None else None,
        target=args.target,
        cache_from=tuple(args.cache_from) if args.cache_from is not None else None,
    )


def build_required(image: Image) -> bool:
    """True for a build image, False for a location image.

    Raises:
        InvariantViolation: If both or neither source is set.
    """
    return image.build_required()


__all__ = [
    "BuildConfig",
    "build_config",
    "build_required",
    "context",
    "dockerfile",
    "join_path",
]
