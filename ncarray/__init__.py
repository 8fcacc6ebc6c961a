# flake8: noqa
from ncarray.array import TypedArray
from ncarray.config import config
from ncarray.dataset import MESSAGE_ADD_RECORD_STRUCTURE, Dataset
from ncarray.errors import (NotScalarError, RangeError, SectionSyntaxError,
                            ShapeMismatchError, StructureConflictError, UnknownFieldError,
                            UnsupportedSectionError, VariableNotFoundError)
from ncarray.indexing import (Range, Section, coordinate, linear_offset, origin_section,
                              parse_section)
from ncarray.overlay import (build_synthetic_record_template, make_record_variable,
                             resolve_record_layout)
from ncarray.reader import VariableReader
from ncarray.storage import BufferSource, ByteSource, LoggingSource
from ncarray.structure import (ArrayStructure, Field, RecordTemplate, StructureData,
                               StructureDecoder, decode_range)
from ncarray.variable import Dimension, Variable, VariableKind
from ncarray.version import version as __version__
