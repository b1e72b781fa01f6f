"""
Coherence Field Engine.

Deterministic, epoch-stepped Kuramoto field with reward accounting:
- Fixed-point phase dynamics with directed couplings
- Aggregate metrics (order parameter, decentralization, network depth)
- Participation state machine
- Four-channel emissions, claims and decoherence

(c) 2026 Anywave Creations
MIT License
"""

from .config import (
    ChannelWeights,
    EngineConfig,
    EngineParameters,
)

from .constants import (
    HarmonicCycle,
    ParticipationState,
)

from .errors import (
    CoherenceFieldError,
    InvalidAmplitude,
    InvalidCouplingStrength,
    SelfCoupling,
    DuplicateCoupling,
    NoCouplingRecord,
    StaleEpoch,
    InvalidEpoch,
    InvalidTimeStep,
    ReserveDepleted,
    NoParticipantRecord,
    ParticipantAlreadyEntered,
    TooEarlyToDecohere,
)

from .models import (
    CoherenceField,
    FieldSnapshot,
    Participant,
    PhaseCoupling,
)

from .emission import ClaimReceipt
from .coupling import DecoherenceReceipt, decoherence_cost

from .events import (
    EventLog,
    EventType,
    FieldEvent,
)

from .engine import (
    CoherenceFieldEngine,
    create_engine,
)

from .persistence import SnapshotStore

__all__ = [
    # Configuration
    'ChannelWeights',
    'EngineConfig',
    'EngineParameters',
    # States
    'HarmonicCycle',
    'ParticipationState',
    # Errors
    'CoherenceFieldError',
    'InvalidAmplitude',
    'InvalidCouplingStrength',
    'SelfCoupling',
    'DuplicateCoupling',
    'NoCouplingRecord',
    'StaleEpoch',
    'InvalidEpoch',
    'InvalidTimeStep',
    'ReserveDepleted',
    'NoParticipantRecord',
    'ParticipantAlreadyEntered',
    'TooEarlyToDecohere',
    # Data model
    'CoherenceField',
    'FieldSnapshot',
    'Participant',
    'PhaseCoupling',
    # Receipts
    'ClaimReceipt',
    'DecoherenceReceipt',
    'decoherence_cost',
    # Events
    'EventLog',
    'EventType',
    'FieldEvent',
    # Engine
    'CoherenceFieldEngine',
    'create_engine',
    'SnapshotStore',
]

__version__ = '1.0.0'
