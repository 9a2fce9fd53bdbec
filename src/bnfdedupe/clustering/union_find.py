"""Union-Find (Disjoint Set Union) data structure for clustering."""

from collections.abc import Iterable


class UnionFind:
    """Union-Find with live member lists and small-to-large merging.

    ``find`` compresses paths iteratively, so adversarial chains cannot hit
    the recursion limit. Each root keeps the list of its members, making
    component retrieval O(size) without a scan over every element.

    Attributes
    ----------
    parent : dict[str, str]
        Parent pointers for each element.
    members : dict[str, list[str]]
        Member list for each root.
    """

    def __init__(self, elements: Iterable[str] = ()) -> None:
        """Initialize the structure, optionally with singleton sets.

        Parameters
        ----------
        elements : Iterable[str], optional
            Elements to add as singletons.
        """
        self.parent: dict[str, str] = {}
        self.members: dict[str, list[str]] = {}
        for element in elements:
            self.make_set(element)

    def __contains__(self, x: object) -> bool:
        return x in self.parent

    def __len__(self) -> int:
        return len(self.parent)

    def make_set(self, x: str) -> None:
        """Create a new set containing element x."""
        if x not in self.parent:
            self.parent[x] = x
            self.members[x] = [x]

    def find(self, x: str) -> str:
        """Find root of set containing x with path compression.

        Parameters
        ----------
        x : str
            Element to find. Unknown elements are added as singletons.

        Returns
        -------
        str
            Root of set containing x.
        """
        if x not in self.parent:
            self.make_set(x)
            return x

        root = x
        while self.parent[root] != root:
            root = self.parent[root]

        while self.parent[x] != root:
            self.parent[x], x = root, self.parent[x]

        return root

    def union(self, x: str, y: str) -> str:
        """Union sets containing x and y, attaching the smaller set to the larger.

        Parameters
        ----------
        x : str
            First element.
        y : str
            Second element.

        Returns
        -------
        str
            Root of the merged set.
        """
        root_x = self.find(x)
        root_y = self.find(y)

        if root_x == root_y:
            return root_x

        # Ties go to the lexicographically smaller root for reproducible roots
        size_x = len(self.members[root_x])
        size_y = len(self.members[root_y])
        if size_x < size_y or (size_x == size_y and root_y < root_x):
            root_x, root_y = root_y, root_x

        self.parent[root_y] = root_x
        self.members[root_x].extend(self.members.pop(root_y))
        return root_x

    def connected(self, x: str, y: str) -> bool:
        """Check whether x and y belong to the same set."""
        return self.find(x) == self.find(y)

    def component(self, x: str) -> list[str]:
        """Members of the set containing x, in insertion order."""
        return self.members[self.find(x)]

    def get_components(self, min_size: int = 1) -> list[list[str]]:
        """Get all connected components.

        Parameters
        ----------
        min_size : int, optional
            Smallest component to return, by default 1.

        Returns
        -------
        list[list[str]]
            Components with sorted members, ordered by their first member.
        """
        components = [sorted(m) for m in self.members.values() if len(m) >= min_size]
        components.sort(key=lambda c: c[0])
        return components
