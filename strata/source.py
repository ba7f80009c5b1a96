"""Pinning a recipe to an upstream commit, and checking what was fetched.

instantiate_from_source() is the "version pin" step of a variant chain:

    emacs-native-comp = instantiate_from_source(
        compose(emacs, native_comp),
        repository="https://git.savannah.gnu.org/git/emacs.git",
        commit="2b0f58957f81bd5c6ad1bbc2fa8a1f86e90e3bd9",
        checksum="0wp5mvrmp5dy6jh9r3h6a8mvmcr0vfc6rja1mds02vv0n1y9i8sj",
        version="28.0.50", revision=1, name="emacs-native-comp",
    )

It only rewrites metadata. The recorded checksum is the sole authority for
the fetched content; verify_source() enforces it before anything is built.
"""

from pathlib import Path

from strata.base32 import encode as b32encode
from strata.nar import VCS_DIRS, file_hash, nar_hash
from strata.recipe import BuildRecipe, SearchPath, Source

LOAD_PATH_VARIABLE = "EMACSLOADPATH"
LOAD_PATH_ROOT = "share/emacs"
DOC_VARIABLE = "INFOPATH"
DOC_PATH = "share/info"


class ChecksumMismatchError(Exception):
    """Fetched content does not hash to the recorded checksum."""

    def __init__(self, source: Source, actual: str):
        super().__init__(
            f"{source.url}: expected sha256 {source.sha256}, got {actual}"
        )
        self.source = source
        self.expected = source.sha256
        self.actual = actual


def version_search_paths(version: str, *,
                         load_path_variable: str = LOAD_PATH_VARIABLE,
                         load_path_root: str = LOAD_PATH_ROOT,
                         doc_variable: str = DOC_VARIABLE) -> tuple[SearchPath, SearchPath]:
    """The load path (keyed by version) and documentation path for a version."""
    return (
        SearchPath(load_path_variable, (
            f"{load_path_root}/site-lisp",
            f"{load_path_root}/{version}/lisp",
        )),
        SearchPath(doc_variable, (DOC_PATH,)),
    )


def instantiate_from_source(recipe: BuildRecipe, repository: str, commit: str,
                            checksum: str, version: str, revision: int, *,
                            name: str | None = None,
                            load_path_variable: str = LOAD_PATH_VARIABLE,
                            load_path_root: str = LOAD_PATH_ROOT,
                            doc_variable: str = DOC_VARIABLE) -> BuildRecipe:
    """Return `recipe` rebuilt from a git commit, with its search paths attached.

    Name (when given), version, revision and source are replaced. Search
    paths for the load-path and doc variables are replaced; any others
    the recipe exports stay in place. Flags, phases and inputs are not
    touched.
    """
    load_path, doc_path = version_search_paths(
        version,
        load_path_variable=load_path_variable,
        load_path_root=load_path_root,
        doc_variable=doc_variable,
    )
    kept = [
        sp for sp in recipe.search_paths
        if sp.variable not in (load_path.variable, doc_path.variable)
    ]
    return recipe.replace(
        name=name if name is not None else recipe.name,
        version=version,
        revision=revision,
        source=Source("git", repository, commit, checksum),
        search_paths=[load_path, doc_path, *kept],
    )


def source_hash(source: Source, path: str | Path) -> str:
    """Hash fetched content the way `source.method` records it, as base32.

    git checkouts are hashed recursively with VCS metadata left out;
    url downloads are hashed flat.
    """
    if source.method == "git":
        digest = nar_hash(path, exclude=VCS_DIRS)
    else:
        digest = file_hash(path)
    return b32encode(digest)


def verify_source(source: Source, path: str | Path) -> None:
    """Raise ChecksumMismatchError unless `path` matches `source.sha256`."""
    actual = source_hash(source, path)
    if actual != source.sha256:
        raise ChecksumMismatchError(source, actual)
