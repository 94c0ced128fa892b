NON_ELEMENT_NAMES = frozenset({"#text", "#comment", "!doctype", "#document-fragment"})


class Node:
    """Represents a DOM-like node.
    - tag_name: e.g., 'div', 'p', etc. Use '#text' for text nodes.
    - attributes: ordered dict of tag attributes
    - children: list of child Nodes
    - parent: reference to parent Node (or None for root)
    """

    __slots__ = (
        "attributes",
        "children",
        "namespace",
        "parent",
        "tag_name",
        "text_content",
    )

    def __init__(self, tag_name, attributes=None, preserve_attr_case=False, text_content=None, namespace=None):
        if tag_name is None or tag_name == "":
            msg = "Empty tag_name passed to Node constructor"
            raise ValueError(msg)

        self.tag_name = tag_name
        self.namespace = namespace  # None for HTML, "svg" or "math" for foreign elements
        if attributes:
            # Accept a mapping or a sequence of (name, value) pairs; first occurrence wins
            items = attributes.items() if hasattr(attributes, "items") else attributes
            kept = {}
            for k, v in items:
                key = k if preserve_attr_case else k.lower()
                if key not in kept:
                    kept[key] = v
            self.attributes = kept
        else:
            self.attributes = {}
        self.children = []
        self.parent = None
        # For text and comment nodes store inline text; for element nodes this is unused
        self.text_content = text_content if text_content is not None else ""

    @classmethod
    def text(cls, data):
        return cls("#text", text_content=data)

    @classmethod
    def comment(cls, data):
        return cls("#comment", text_content=data)

    @classmethod
    def fragment(cls):
        return cls("#document-fragment")

    @property
    def is_element(self):
        return self.tag_name not in NON_ELEMENT_NAMES

    @property
    def is_foreign(self):
        """Check if this is a foreign element (SVG or MathML)."""
        return self.namespace in ("svg", "math")

    def append_child(self, child):
        if self._would_create_circular_reference(child):
            msg = f"Adding {child.tag_name} as child of {self.tag_name} would create circular reference"
            raise ValueError(msg)

        if child.parent is not None:
            child.parent.remove_child(child)

        child.parent = self
        self.children.append(child)
        return child

    def _would_create_circular_reference(self, child):
        """Check if adding child would create a circular reference."""
        # Fast path: a detached leaf can't be our ancestor
        if child.parent is None and not child.children:
            return child is self

        current = self
        while current is not None:
            if current is child:
                return True
            current = current.parent
        return False

    def remove_child(self, child):
        """Remove a child node. Sibling order is left untouched.

        Args:
            child: The Node to remove

        """
        for index, existing in enumerate(self.children):
            if existing is child:
                del self.children[index]
                child.parent = None
                return

    def remove_children(self, doomed):
        """Detach every node in `doomed` from this node in one pass over the child list."""
        if not doomed:
            return
        doomed_ids = {id(child) for child in doomed}
        kept = []
        for child in self.children:
            if id(child) in doomed_ids:
                child.parent = None
            else:
                kept.append(child)
        self.children = kept

    def detach(self):
        """Remove this node (and its subtree) from its parent."""
        if self.parent is not None:
            self.parent.remove_child(self)

    def iter_descendants(self):
        """Yield every descendant in document order, without recursion."""
        stack = list(reversed(self.children))
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def __repr__(self):
        if self.tag_name == "#text":
            return f"Node(#text='{self.text_content[:30]}')"
        if self.tag_name == "#comment":
            return f"Node(#comment='{self.text_content[:30]}')"
        return f"Node(<{self.tag_name}>, children={len(self.children)})"
