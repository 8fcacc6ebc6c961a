"""Record structures synthesized from record variables.

In the classic netCDF layout, the data of every variable whose first
dimension is the unlimited dimension is interleaved record by record. The
functions here describe one such record as a structure, so that whole records
can be read as rows with one field per record variable.
"""
import logging

from ncarray.errors import StructureConflictError
from ncarray.structure import Field, RecordTemplate
from ncarray.variable import Variable, VariableKind


logger = logging.getLogger(__name__)


def _check_candidates(variables):
    record_dim = None
    for v in variables:
        if v.kind != VariableKind.PLAIN or not v.is_record:
            raise ValueError('{!r} is not a record variable'.format(v.name))
        if record_dim is None:
            record_dim = v.dimensions[0]
        elif v.dimensions[0].name != record_dim.name:
            raise ValueError('{!r} does not share the unlimited dimension {!r}'
                             .format(v.name, record_dim.name))


def _base_offset(variables):
    begins = [v.begin for v in variables if v.declares_begin]
    return min(begins) if begins else 0


def build_synthetic_record_template(variables):
    """Describe one record of `variables` as a :class:`RecordTemplate`.

    Each variable becomes one field, in the given order. A field's shape is
    the variable's shape without its record dimension. Its offset is taken
    from the variable's declared `begin` relative to the first record
    variable, or else follows directly on the previous field.

    Raises
    ------
    StructureConflictError
        If two variables would occupy the same bytes of a record, or if the
        variables disagree on the record size.

    """
    variables = list(variables)
    _check_candidates(variables)

    base = _base_offset(variables)
    position = 0
    fields = []
    for v in variables:
        offset = v.begin - base if v.declares_begin else position
        if offset < position:
            raise StructureConflictError(
                'record variable {!r} at record offset {} overlaps the preceding '
                'variable, which ends at {}'.format(v.name, offset, position)
            )
        field = Field(v.name, offset, v.dtype, v.inner_shape)
        fields.append(field)
        position = field.end

    strides = {v.record_stride for v in variables if v.declares_record_stride}
    if len(strides) > 1:
        raise StructureConflictError('record variables disagree on record size: {}'
                                     .format(sorted(strides)))
    record_size = strides.pop() if strides else None

    return RecordTemplate(fields, record_size=record_size)


def make_record_variable(variables, name='record'):
    """Structure variable with one element per record of `variables`."""
    variables = list(variables)
    if not variables:
        raise ValueError("no record variables to build a record structure from")
    template = build_synthetic_record_template(variables)
    begin = _base_offset(variables)
    logger.debug("synthesized %r from %d record variable(s), %d bytes per record",
                 name, len(variables), template.record_size)
    return Variable(name, dimensions=(variables[0].dimensions[0],), begin=begin,
                    template=template)


def resolve_record_layout(variables):
    """Place record variables that leave `begin` or `record_stride` undeclared
    where they fall within the synthesized record.

    Afterwards every variable's flat layout addresses the same bytes as its
    field in :func:`build_synthetic_record_template`. Declared values are
    left untouched.

    Returns
    -------
    template : RecordTemplate or None
        The record layout, or None if `variables` is empty.

    Raises
    ------
    StructureConflictError
        If the variables cannot share one record layout.

    """
    variables = list(variables)
    if not variables:
        return None
    template = build_synthetic_record_template(variables)
    base = _base_offset(variables)
    for v in variables:
        v._resolve_layout(base + template[v.name].offset, template.record_size)
        logger.debug("%s: begin %d, record stride %d", v.name, v.begin, v.record_stride)
    return template
