"""mu0 assembler: pass 1 (labels.py) builds the label table, pass 2 (assembler.py) encodes."""

from .labels import LabelTable, build_label_table
from .assembler import (
    Assembler, AssemblerError, UnknownLabelError, AsmLine, assemble, assemble_to_hex,
)
