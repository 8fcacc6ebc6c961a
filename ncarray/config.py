"""
Runtime configuration for ncarray, based on the Donfig library.

Values can be set programmatically::

    from ncarray.config import config
    config.set({"record_structure": True})

or through environment variables of the form ``NCARRAY_RECORD_STRUCTURE=True``,
where a double underscore ``__`` denotes nested access
(``NCARRAY_READ__COALESCE=False``).
"""
from donfig import Config as DConfig


class BadConfigError(ValueError):
    _msg = "bad Config: %r"


class Config(DConfig):
    """The Config will collect configuration from config files and environment variables

    Example environment variables:
    Grabs environment variables of the form "NCARRAY_FOO__BAR_BAZ=123" and
    turns these into config variables of the form ``{"foo": {"bar-baz": 123}}``
    """

    def reset(self):
        self.clear()
        self.refresh()


# The default configuration for ncarray
config = Config(
    "ncarray",
    defaults=[
        {
            "byteorder": ">",
            "record_structure": False,
            "record": {"name": "record"},
            "read": {"coalesce": True},
        }
    ],
)


def parse_byteorder(value):
    if value not in ("<", ">", "="):
        raise BadConfigError("byteorder must be one of '<', '>' or '=', got %r" % (value,))
    return value
