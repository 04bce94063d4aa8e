from .repo_tree import repo_tree
from .file_at_revision import read_file_at_revision
from .diff_range import diff_range

__all__ = ["repo_tree", "read_file_at_revision", "diff_range"]
