import numbers
from functools import reduce
from operator import mul
from textwrap import TextWrapper
from typing import Any, Dict, Tuple

from asciitree import BoxStyle, LeftAligned
from asciitree.traversal import Traversal


def normalize_shape(shape) -> Tuple[int, ...]:
    """Convenience function to normalize the `shape` argument."""

    if shape is None:
        raise TypeError('shape is None')

    # handle 1D convenience form
    if isinstance(shape, numbers.Integral):
        shape = (int(shape),)

    # normalize
    shape = tuple(int(s) for s in shape)
    if any(s < 0 for s in shape):
        raise ValueError('shape must not contain negative lengths, got %r' % (shape,))
    return shape


def product(shape) -> int:
    """Number of elements in an array of the given shape; 1 for a scalar."""
    return reduce(mul, shape, 1)


def human_readable_size(size) -> str:
    if size < 2**10:
        return '%s' % size
    elif size < 2**20:
        return '%.1fK' % (size / float(2**10))
    elif size < 2**30:
        return '%.1fM' % (size / float(2**20))
    elif size < 2**40:
        return '%.1fG' % (size / float(2**30))
    else:
        return '%.1fT' % (size / float(2**40))


def info_text_report(items: Dict[Any, Any]) -> str:
    keys = [k for k, v in items]
    max_key_len = max(len(k) for k in keys)
    report = ''
    for k, v in items:
        wrapper = TextWrapper(width=80,
                              initial_indent=k.ljust(max_key_len) + ' : ',
                              subsequent_indent=' '*max_key_len + ' : ')
        text = wrapper.fill(str(v))
        report += text + '\n'
    return report


class InfoReporter(object):

    def __init__(self, obj):
        self.obj = obj

    def __repr__(self):
        items = self.obj.info_items()
        return info_text_report(items)


class TreeNode(object):
    """Node of a dataset tree: the dataset itself, a variable, or a
    structure field."""

    def __init__(self, obj, depth=0, level=None):
        self.obj = obj
        self.depth = depth
        self.level = level

    def get_children(self):
        if self.level is not None and self.depth >= self.level:
            return []
        depth = self.depth + 1
        if hasattr(self.obj, 'variables'):
            children = self.obj.variables.values()
        elif getattr(self.obj, 'template', None) is not None:
            children = list(self.obj.template)
        else:
            children = []
        return [TreeNode(o, depth=depth, level=self.level) for o in children]

    def get_text(self):
        name = self.obj.name or "/"
        if hasattr(self.obj, 'dimensions') and hasattr(self.obj, 'dtype'):
            dims = ', '.join(d.name for d in self.obj.dimensions)
            if getattr(self.obj, 'template', None) is not None:
                name += ' ({}) structure'.format(dims)
            else:
                name += ' ({}) {}'.format(dims, self.obj.dtype)
        elif hasattr(self.obj, 'shape'):
            name += ' {} {}'.format(self.obj.shape, self.obj.dtype)
        return name


class TreeTraversal(Traversal):

    def get_children(self, node):
        return node.get_children()

    def get_root(self, tree):
        return tree

    def get_text(self, node):
        return node.get_text()


class TreeViewer(object):

    def __init__(self, dataset, level=None):

        self.dataset = dataset
        self.level = level

        self.text_kwargs = dict(
            horiz_len=2,
            label_space=1,
            indent=1
        )

        self.bytes_kwargs = dict(
            UP_AND_RIGHT="+",
            HORIZONTAL="-",
            VERTICAL="|",
            VERTICAL_AND_RIGHT="+"
        )

        self.unicode_kwargs = dict(
            UP_AND_RIGHT="└",
            HORIZONTAL="─",
            VERTICAL="│",
            VERTICAL_AND_RIGHT="├"
        )

    def __bytes__(self):
        drawer = LeftAligned(
            traverse=TreeTraversal(),
            draw=BoxStyle(gfx=self.bytes_kwargs, **self.text_kwargs)
        )
        root = TreeNode(self.dataset, level=self.level)
        return drawer(root).encode()

    def __str__(self):
        drawer = LeftAligned(
            traverse=TreeTraversal(),
            draw=BoxStyle(gfx=self.unicode_kwargs, **self.text_kwargs)
        )
        root = TreeNode(self.dataset, level=self.level)
        return drawer(root)

    def __repr__(self):
        return self.__str__()
