import collections
import logging

from ncarray.config import config
from ncarray.errors import VariableNotFoundError
from ncarray.overlay import make_record_variable, resolve_record_layout
from ncarray.reader import VariableReader
from ncarray.util import InfoReporter, TreeViewer, human_readable_size
from ncarray.variable import VariableKind


logger = logging.getLogger(__name__)


__all__ = ["Dataset", "MESSAGE_ADD_RECORD_STRUCTURE"]


MESSAGE_ADD_RECORD_STRUCTURE = "AddRecordStructure"


class Dataset(object):
    """Dimensions and variables laid out in a single byte source.

    Parameters
    ----------
    source : ByteSource
        Supplies the bytes of every variable.
    dimensions : sequence of Dimension
    variables : sequence of Variable
        In declaration order. Record variables that do not declare both
        `begin` and `record_stride` are placed within a shared record, packed
        in declaration order.
    record_structure : bool, optional
        Expose the record variables as a single structure variable. Defaults
        to ``config["record_structure"]``.

    Examples
    --------
    >>> ds = Dataset(source, dims, variables, record_structure=True)  # doctest: +SKIP
    >>> rows = ds['record'].read('1:1:2')  # doctest: +SKIP
    >>> rows[0].get_scalar('time')  # doctest: +SKIP
    np.int32(18)

    """

    name = ''

    def __init__(self, source, dimensions=(), variables=(), record_structure=None):
        self.source = source
        self.reader = VariableReader(source)
        self.dimensions = collections.OrderedDict((d.name, d) for d in dimensions)
        self.variables = collections.OrderedDict()
        for v in variables:
            self._add_variable(v)
        self._resolve_record_layout()
        self._record_variable = None

        if record_structure is None:
            record_structure = config.get('record_structure')
        if record_structure:
            self.add_record_structure()

    def _add_variable(self, variable):
        if variable.name in self.variables:
            raise ValueError('duplicate variable name {!r}'.format(variable.name))
        variable._reader = self.reader
        self.variables[variable.name] = variable

    def _resolve_record_layout(self):
        record_variables = self.record_variables
        if any(not (v.declares_begin and v.declares_record_stride)
               for v in record_variables):
            resolve_record_layout(record_variables)

    @property
    def unlimited_dimension(self):
        for d in self.dimensions.values():
            if d.unlimited:
                return d
        return None

    @property
    def numrecs(self):
        return self.source.current_unlimited_length()

    @property
    def record_variables(self):
        """Plain variables whose first dimension is the unlimited dimension, in
        declaration order."""
        return [v for v in self.variables.values()
                if v.kind == VariableKind.PLAIN and v.is_record]

    def add_record_structure(self):
        """Expose the record variables as a structure variable named
        ``config["record.name"]``.

        Returns
        -------
        added : bool
            True if the structure exists after the call, False if there are no
            record variables.

        """
        if self._record_variable is not None:
            return True
        record_variables = self.record_variables
        if not record_variables:
            return False
        variable = make_record_variable(record_variables, name=config.get('record.name'))
        self._add_variable(variable)
        self._record_variable = variable
        return True

    def send_message(self, message):
        """Handle a request by name; only ``"AddRecordStructure"`` is known."""
        if message == MESSAGE_ADD_RECORD_STRUCTURE:
            return self.add_record_structure()
        raise ValueError('unknown message: {!r}'.format(message))

    def find_variable(self, name):
        """The named variable, or None."""
        return self.variables.get(name)

    def __getitem__(self, name):
        try:
            return self.variables[name]
        except KeyError:
            raise VariableNotFoundError(name)

    def __contains__(self, name):
        return name in self.variables

    def __iter__(self):
        return iter(self.variables)

    def __len__(self):
        return len(self.variables)

    def read(self, name, section=None):
        return self[name].read(section)

    def tree(self, level=None):
        """Text tree of the variables and, for structures, their fields."""
        return TreeViewer(self, level=level)

    @property
    def info(self):
        return InfoReporter(self)

    def info_items(self):
        items = [
            ('Type', '{}.{}'.format(type(self).__module__, type(self).__name__)),
            ('Source type', '{}.{}'.format(type(self.source).__module__,
                                           type(self.source).__name__)),
            ('Dimensions', ', '.join(self.dimensions) or '-'),
            ('Variables', ', '.join(self.variables) or '-'),
        ]
        if self.unlimited_dimension is not None:
            items.append(('Records', self.numrecs))
        if self._record_variable is not None:
            size = self._record_variable.template.record_size
            if size > 2**10:
                size = '{} ({})'.format(size, human_readable_size(size))
            items.append(('Record size', size))
        return items

    def __repr__(self):
        t = type(self)
        return '<{}.{} {} variable(s)>'.format(t.__module__, t.__name__, len(self.variables))
