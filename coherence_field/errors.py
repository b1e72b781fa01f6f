"""
Error taxonomy for coherence field operations.

Every error is local and recoverable: the operation that raised it left
the field snapshot exactly as it was before the call.

(c) 2026 Anywave Creations
MIT License
"""


class CoherenceFieldError(Exception):
    """Base class for all caller-facing engine errors."""
    code = "coherence_field_error"


class InvalidAmplitude(CoherenceFieldError):
    """Amplitude below the minimum, above holdings, or above free amplitude."""
    code = "invalid_amplitude"


class InvalidCouplingStrength(CoherenceFieldError):
    code = "invalid_coupling_strength"


class SelfCoupling(CoherenceFieldError):
    code = "self_coupling"


class DuplicateCoupling(CoherenceFieldError):
    code = "duplicate_coupling"


class NoCouplingRecord(CoherenceFieldError):
    code = "no_coupling_record"


class StaleEpoch(CoherenceFieldError):
    """The requested epoch index is not ahead of the current epoch."""
    code = "stale_epoch"


class InvalidEpoch(CoherenceFieldError):
    """The requested epoch index skips past current + 1."""
    code = "invalid_epoch"


class InvalidTimeStep(CoherenceFieldError):
    code = "invalid_time_step"


class ReserveDepleted(CoherenceFieldError):
    code = "reserve_depleted"


class NoParticipantRecord(CoherenceFieldError):
    code = "no_participant_record"


class ParticipantAlreadyEntered(CoherenceFieldError):
    code = "participant_already_entered"


class TooEarlyToDecohere(CoherenceFieldError):
    code = "too_early_to_decohere"
