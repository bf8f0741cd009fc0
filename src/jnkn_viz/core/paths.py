"""
File path normalization and fuzzy matching.

Paths reach the engine from two systems that disagree on style: the analyzer
reports workspace paths, the debugger reports whatever its runtime sees
(absolute, Windows separators, ``..`` segments). Matching therefore works on
lexically normalized segment lists.

Known risk: two unrelated files sharing a suffix of two or more segments under
different roots (``a/util/Io.java`` vs ``b/util/Io.java``) will match. This is
what makes cross-root debugger correlation work, so it is kept.
"""

from typing import List, Optional

MIN_SUFFIX_SEGMENTS = 2


class PathMatcher:
    """Utility class for path normalization and suffix matching."""

    @staticmethod
    def normalize(path: Optional[str]) -> str:
        """
        Normalize a path lexically.

        Backslashes become slashes, empty and ``.`` segments are dropped and
        ``..`` pops the previous segment. A ``..`` with nothing resolvable
        before it is kept rather than discarded.
        """
        if not path:
            return ""
        return "/".join(PathMatcher.segments(path))

    @staticmethod
    def segments(path: str) -> List[str]:
        parts = [p for p in path.replace("\\", "/").split("/") if p and p != "."]
        result: List[str] = []
        for part in parts:
            if part == "..":
                if result and result[-1] != "..":
                    result.pop()
                else:
                    result.append(part)
            else:
                result.append(part)
        return result

    @staticmethod
    def match(a: Optional[str], b: Optional[str]) -> bool:
        """
        Check whether two paths refer to the same file.

        Equal normalized forms always match. Otherwise the paths must share a
        trailing run of at least two segments; a shared basename alone is not
        enough.
        """
        if not a or not b:
            return False

        parts_a = PathMatcher.segments(a)
        parts_b = PathMatcher.segments(b)
        if not parts_a or not parts_b:
            return False
        if parts_a == parts_b:
            return True

        # Any longer shared suffix contains the shortest admissible one
        if min(len(parts_a), len(parts_b)) < MIN_SUFFIX_SEGMENTS:
            return False
        return parts_a[-MIN_SUFFIX_SEGMENTS:] == parts_b[-MIN_SUFFIX_SEGMENTS:]
