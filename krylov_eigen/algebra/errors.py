'''
file:       krylov_eigen/algebra/errors.py

Error kinds raised by the QR kernels and the eigensolver drivers.

Every error carries an `EigenErrorMsg` code. The concrete subclasses let the
caller react to a specific failure:

- DimensionMismatchError    : an operand does not match the factored dimension.
- DegenerateInputError      : non-square, empty or non-finite matrix.
- StructureError            : matrix violates the declared band structure.
- NotConvergedError         : iteration budget exhausted, carries the partial result.
- NumericalStagnationError  : QR iteration stopped deflating despite exceptional shifts.
'''

from enum import Enum
from typing import Any, Optional, Tuple

# -----------------------------------------------------------------------------
#! Errors
# -----------------------------------------------------------------------------

class EigenErrorMsg(Enum):
    '''
    Enumeration class for eigensolver error messages.
    '''
    DIM_MISMATCH        = 201
    DEGENERATE_INPUT    = 202
    STRUCTURE_VIOLATED  = 203
    NOT_CONVERGED       = 204
    STAGNATION          = 205
    NOT_COMPUTED        = 206

    def __str__(self):
        return self.name.replace('_', ' ').title()

    def __repr__(self):
        return f"<{self.__class__.__name__}.{self.name}: '{str(self)}'>"

class EigenError(Exception):
    '''
    Base class for exceptions in the eigensolver modules.
    '''
    def __init__(self, code: EigenErrorMsg, message: Optional[str] = None):
        self.code       = code
        self.message    = message if message else str(code)
        super().__init__(self.message)

    def __str__(self):
        return f"[EigenError {self.code.name} ({self.code.value})]: {self.message}"

    def __repr__(self):
        return self.__str__()

# -----------------------------------------------------------------------------

class DimensionMismatchError(EigenError, ValueError):
    '''Shape contract violated by the caller.'''
    def __init__(self, message: Optional[str] = None, expected: Any = None, got: Any = None):
        self.expected   = expected
        self.got        = got
        if message is None:
            message = f"expected dimension {expected}, got {got}"
        super().__init__(EigenErrorMsg.DIM_MISMATCH, message)

class DegenerateInputError(EigenError, ValueError):
    '''Non-square, zero-size or non-finite input matrix.'''
    def __init__(self, message: Optional[str] = None, code: EigenErrorMsg = EigenErrorMsg.DEGENERATE_INPUT):
        super().__init__(code, message)

class StructureError(DegenerateInputError):
    '''Input has nonzero entries outside the declared band, or is not symmetric when it must be.'''
    def __init__(self, message: Optional[str] = None):
        super().__init__(message, code=EigenErrorMsg.STRUCTURE_VIOLATED)

class NotConvergedError(EigenError):
    '''
    Iteration budget exhausted before all wanted Ritz pairs converged.

    Attributes:
        result (EigenResult):
            The best-effort result at the moment the budget ran out.
        iterations (int):
            Number of restarts performed.
        num_converged (int):
            Number of wanted Ritz pairs that satisfied the convergence test.
        residual_norms (NDArray):
            Residual estimates of the returned Ritz pairs.
    '''
    def __init__(self,
                message         : Optional[str] = None,
                result          : Any           = None,
                iterations      : Optional[int] = None,
                num_converged   : Optional[int] = None,
                residual_norms  : Any           = None):
        self.result         = result
        self.iterations     = iterations
        self.num_converged  = num_converged
        self.residual_norms = residual_norms
        super().__init__(EigenErrorMsg.NOT_CONVERGED, message)

class NumericalStagnationError(EigenError):
    '''
    Shifted-QR iteration failed to deflate the active block.

    Attributes:
        iterations (int):
            Number of QR steps spent before giving up.
        block (Tuple[int, int]):
            Row range (first, last) of the unreduced block that did not deflate.
    '''
    def __init__(self,
                message     : Optional[str]             = None,
                iterations  : Optional[int]             = None,
                block       : Optional[Tuple[int, int]] = None):
        self.iterations = iterations
        self.block      = block
        super().__init__(EigenErrorMsg.STAGNATION, message)

# -----------------------------------------------------------------------------
#! EOF
