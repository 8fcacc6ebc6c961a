class _BaseNcError(ValueError):
    _msg = ""

    def __init__(self, *args):
        super().__init__(self._msg.format(*args))


class _BaseNcIndexError(IndexError):
    _msg = ""

    def __init__(self, *args):
        super().__init__(self._msg.format(*args))


class SectionSyntaxError(_BaseNcError):
    _msg = "invalid section {0!r}: {1}"


class RangeError(IndexError):
    pass


class BoundsCheckError(RangeError):

    def __init__(self, index, dim_len):
        super().__init__(
            "index {} out of bounds for dimension with length {}".format(index, dim_len)
        )


class ShapeMismatchError(_BaseNcError):
    _msg = "expected {0} values for shape {1!r}, got {2}"


class UnsupportedSectionError(_BaseNcIndexError):
    _msg = ("structure {0!r} can only be sectioned along its record dimension; "
            "expected {1} section component(s), got {2}")


class StructureConflictError(_BaseNcError):
    _msg = "{0}"


class UnknownFieldError(KeyError):

    def __init__(self, name):
        super().__init__(name)
        self.name = name

    def __str__(self):
        return "no field named {!r} in record template".format(self.name)


class NotScalarError(_BaseNcError):
    _msg = "field {0!r} has shape {1!r}; expected exactly one element"


class VariableNotFoundError(KeyError):

    def __init__(self, name):
        super().__init__(name)
        self.name = name

    def __str__(self):
        return "variable not found: {!r}".format(self.name)


def err_too_many_indices(selection, shape):
    raise IndexError("too many indices for array; expected {}, got {}"
                     .format(len(shape), len(selection)))


def err_negative_step():
    raise RangeError("only slices with step >= 1 are supported")


def err_boundscheck(index, dim_len):
    raise BoundsCheckError(index, dim_len)
