"""
Coherence Field Engine.

Main orchestration class that ties together:
- Phase dynamics (Kuramoto mean field + directed couplings)
- Aggregate field metrics
- Participation state machine
- Emission accrual and claims
- Couplings and decoherence

The engine holds one current FieldSnapshot. Every operation copies it,
mutates the copy and swaps the copy in under the engine lock; an
operation that raises leaves the current snapshot untouched.

Real-valued arguments (phases, strengths, time steps, overrides) are
accepted as plain numbers and converted to fixed point once at the
boundary. Amounts are integer token units.

(c) 2026 Anywave Creations
MIT License
"""

from collections import Counter
from typing import Any, Callable, Dict, List, Optional, Union
import logging
import threading

from .config import EngineConfig, EngineParameters
from .constants import COHERENCE_PEAK_THRESHOLD, HarmonicCycle, ParticipationState
from .coupling import (
    DecoherenceReceipt,
    apply_decoherence,
    create_coupling,
    remove_coupling,
    accrue_shared_emissions,
)
from .dynamics import advance_phase, compute_phases, initial_phase, natural_frequency
from .emission import ClaimReceipt, accrue_emissions, settle_claim
from .errors import (
    CoherenceFieldError,
    InvalidAmplitude,
    InvalidEpoch,
    InvalidTimeStep,
    NoParticipantRecord,
    ParticipantAlreadyEntered,
    StaleEpoch,
)
from .events import EventLog, EventType, FieldEvent
from .fixed_point import PRECISION, Real, clamp, mul, normalize_phase, to_fixed, to_float
from .metrics import compute_field_metrics, decentralization_coefficient, order_parameter
from .models import FieldSnapshot, Participant, PhaseCoupling
from .state_machine import evaluate_participant

log = logging.getLogger(__name__)


class CoherenceFieldEngine:
    """Epoch-stepped coherence field.

    Flow per step:
        phases -> metrics -> state machine -> emissions -> edge accrual -> exits
    """

    def __init__(self,
                 config: Optional[EngineConfig] = None,
                 snapshot: Optional[FieldSnapshot] = None,
                 on_event: Optional[Callable[[FieldEvent], None]] = None):
        """Initialize the engine.

        Args:
            config: Engine configuration (defaults apply if omitted).
            snapshot: Restored snapshot to resume from. A fresh field with
                both reserves funded from the config is created otherwise.
            on_event: Callback for every recorded FieldEvent.
        """
        self.config = config or EngineConfig()
        self.params: EngineParameters = self.config.to_parameters()
        self.events = EventLog(max_length=self.config.event_history, on_event=on_event)

        if snapshot is None:
            snapshot = FieldSnapshot()
            snapshot.field.reserve_balance = self.config.initial_reserve
            snapshot.field.golden_reserve_balance = self.config.initial_golden_reserve
            snapshot.field.emission_rate = self.params.emission_rate
        self._snapshot = snapshot

        self._pending_exits: Dict[str, bool] = {}
        self._lock = threading.RLock()

    # -------------------------------------------------------------------------
    # Read access
    # -------------------------------------------------------------------------

    @property
    def snapshot(self) -> FieldSnapshot:
        """The current snapshot. Treat as read-only."""
        with self._lock:
            return self._snapshot

    @property
    def epoch(self) -> int:
        return self.snapshot.epoch

    @property
    def pending_exits(self) -> List[str]:
        with self._lock:
            return list(self._pending_exits)

    def get_participant(self, participant_id: str) -> Participant:
        return self.snapshot.get_participant(participant_id)

    def get_coupling(self, source_id: str, target_id: str) -> PhaseCoupling:
        return self.snapshot.get_coupling(source_id, target_id)

    def governance_weight(self, participant_id: str) -> int:
        """amplitude × governance multiplier of the current state."""
        p = self.get_participant(participant_id)
        return mul(p.amplitude, p.state.governance_multiplier)

    # -------------------------------------------------------------------------
    # Participation
    # -------------------------------------------------------------------------

    def enter(self, participant_id: str, amplitude: int,
              cycle: Union[HarmonicCycle, str],
              holdings: Optional[int] = None,
              phase: Optional[Real] = None) -> Participant:
        """Admit a new participant in ATTUNING.

        Args:
            participant_id: Caller-chosen unique id.
            amplitude: Stake to commit (token units).
            cycle: Harmonic commitment cycle.
            holdings: Caller's available balance; amplitude may not exceed it.
            phase: Initial phase in radians; derived from the id if omitted.
        """
        cycle = HarmonicCycle(cycle)
        if amplitude < self.params.minimum_amplitude:
            raise InvalidAmplitude(
                f"amplitude {amplitude} below minimum {self.params.minimum_amplitude}"
            )
        if holdings is not None and amplitude > holdings:
            raise InvalidAmplitude(f"amplitude {amplitude} exceeds holdings {holdings}")

        with self._lock:
            snap = self._snapshot.copy()
            if participant_id in snap.participants:
                raise ParticipantAlreadyEntered(
                    f"participant {participant_id!r} already entered"
                )
            theta = (
                initial_phase(participant_id, snap.epoch) if phase is None
                else normalize_phase(to_fixed(phase))
            )
            p = Participant.create(
                participant_id=participant_id,
                amplitude=amplitude,
                phase=theta,
                natural_frequency=natural_frequency(
                    participant_id, amplitude,
                    self.params.base_frequency, self.params.frequency_spread,
                ),
                cycle=cycle,
                epoch=snap.epoch,
            )
            snap.participants[participant_id] = p
            self._refresh_aggregates(snap)
            self._commit(snap, [FieldEvent(
                EventType.PARTICIPANT_ENTERED, snap.epoch, participant_id,
                {'amplitude': amplitude, 'cycle': cycle.value, 'phase': theta},
            )])

        log.info("Participant %s entered at epoch %d (amplitude=%d, cycle=%s)",
                 participant_id, p.entry_epoch, amplitude, cycle.value)
        return p

    def claim_emissions(self, participant_id: str) -> ClaimReceipt:
        """Pay out both unclaimed balances, all or nothing."""
        with self._lock:
            snap = self._snapshot.copy()
            receipt = settle_claim(snap, snap.get_participant(participant_id))
            self._commit(snap, [FieldEvent(
                EventType.EMISSIONS_CLAIMED, snap.epoch, participant_id,
                receipt.to_dict(),
            )])
        log.info("Participant %s claimed %d (+%d golden)",
                 participant_id, receipt.amount, receipt.golden_amount)
        return receipt

    def decohere(self, participant_id: str, force: bool = False) -> DecoherenceReceipt:
        """Exit now. Before the cycle completes this requires force=True."""
        with self._lock:
            snap = self._snapshot.copy()
            receipt = apply_decoherence(snap, participant_id, force)
            self._refresh_aggregates(snap)
            self._pending_exits.pop(participant_id, None)
            self._commit(snap, [FieldEvent(
                EventType.PARTICIPANT_DECOHERED, snap.epoch, participant_id,
                receipt.to_dict(),
            )])
        return receipt

    def request_exit(self, participant_id: str, force: bool = False) -> None:
        """Queue a decoherence to run at the end of the next step."""
        with self._lock:
            self._snapshot.get_participant(participant_id)
            self._pending_exits[participant_id] = force

    def fund_reserve(self, amount: int, golden: bool = False) -> int:
        """Replenish the main or golden reserve. Returns the new balance."""
        if amount < 0:
            raise InvalidAmplitude(f"cannot fund a reserve with {amount}")
        with self._lock:
            snap = self._snapshot.copy()
            if golden:
                snap.field.golden_reserve_balance += amount
                balance = snap.field.golden_reserve_balance
            else:
                snap.field.reserve_balance += amount
                balance = snap.field.reserve_balance
            self._commit(snap, [])
        log.info("Funded %s reserve with %d (balance=%d)",
                 "golden" if golden else "main", amount, balance)
        return balance

    # -------------------------------------------------------------------------
    # Couplings
    # -------------------------------------------------------------------------

    def phase_couple(self, source_id: str, target_id: str, strength: Real,
                     locked_amplitude: int) -> PhaseCoupling:
        """Create a directed coupling pulling source toward target."""
        with self._lock:
            snap = self._snapshot.copy()
            coupling = create_coupling(
                snap, source_id, target_id, to_fixed(strength), locked_amplitude,
                self.params.max_coupling_strength,
            )
            self._commit(snap, [FieldEvent(
                EventType.PHASE_COUPLED, snap.epoch, source_id, coupling.to_dict(),
            )])
        return coupling

    def uncouple(self, source_id: str, target_id: str) -> PhaseCoupling:
        """Remove a coupling, releasing its locked amplitude."""
        with self._lock:
            snap = self._snapshot.copy()
            coupling = remove_coupling(snap, source_id, target_id)
            self._commit(snap, [FieldEvent(
                EventType.PHASE_UNCOUPLED, snap.epoch, source_id, coupling.to_dict(),
            )])
        return coupling

    # -------------------------------------------------------------------------
    # Field evolution
    # -------------------------------------------------------------------------

    def update_participant_phase(self, participant_id: str,
                                 dt: Optional[Real] = None) -> int:
        """Advance one participant's phase for the current epoch.

        Idempotent within an epoch: once updated, further calls return
        the same phase until the field advances.
        """
        dt_fixed = self._time_step(dt)
        with self._lock:
            current = self._snapshot.get_participant(participant_id)
            if current.last_phase_update_epoch == self._snapshot.epoch:
                return current.phase
            snap = self._snapshot.copy()
            p = snap.participants[participant_id]
            p.phase = advance_phase(snap, participant_id, dt_fixed,
                                    self.params.coupling_constant)
            p.last_phase_update_epoch = snap.epoch
            self._commit(snap, [FieldEvent(
                EventType.PHASE_UPDATED, snap.epoch, participant_id, {'phase': p.phase},
            )])
        return p.phase

    def advance_field(self, epoch_index: int,
                      override_psi: Optional[Real] = None,
                      override_r: Optional[Real] = None,
                      override_depth: Optional[Real] = None) -> FieldSnapshot:
        """Close the current epoch and open epoch_index.

        Uses the participants' current phases as they stand. Optional
        overrides replace the computed Ψ, R and network depth.
        """
        with self._lock:
            self._check_epoch(epoch_index)
            snap = self._snapshot.copy()
            events = self._advance(
                snap, epoch_index,
                override_psi=None if override_psi is None else to_fixed(override_psi),
                override_r=None if override_r is None else to_fixed(override_r),
                override_depth=None if override_depth is None else to_fixed(override_depth),
            )
            self._commit(snap, events)
            return snap

    def step(self, dt: Optional[Real] = None, workers: Optional[int] = None) -> FieldSnapshot:
        """Run one full epoch: every phase, then the field advance, then queued exits.

        Args:
            dt: Time step (defaults to the configured default_dt).
            workers: Thread pool size for the phase computation.

        Returns:
            The new current snapshot.
        """
        dt_fixed = self._time_step(dt)
        with self._lock:
            frozen = self._snapshot
            phases = compute_phases(frozen, dt_fixed, self.params.coupling_constant, workers)
            snap = frozen.copy()
            for pid, theta in phases.items():
                p = snap.participants[pid]
                # individually updated phases are final for this epoch
                if p.last_phase_update_epoch != frozen.epoch:
                    p.phase = theta
                    p.last_phase_update_epoch = frozen.epoch
            events = self._advance(snap, frozen.epoch + 1)
            snap, exit_events = self._process_exits(snap)
            self._commit(snap, events + exit_events)
            return snap

    def run(self, epochs: int, dt: Optional[Real] = None,
            workers: Optional[int] = None) -> FieldSnapshot:
        snap = self.snapshot
        for _ in range(epochs):
            snap = self.step(dt, workers)
        return snap

    # -------------------------------------------------------------------------
    # Status
    # -------------------------------------------------------------------------

    def get_status(self) -> Dict[str, Any]:
        """Get current field status (display values are floats)."""
        snap = self.snapshot
        f = snap.field
        states = Counter(p.state.value for p in snap.participants.values())
        return {
            'epoch': f.epoch,
            'order_parameter': to_float(f.order_parameter),
            'global_phase': to_float(f.global_phase),
            'decentralization_coefficient': to_float(f.decentralization_coefficient),
            'network_coherence_depth': to_float(f.network_coherence_depth),
            'total_weight': f.total_weight,
            'participant_count': f.participant_count,
            'coupling_count': len(snap.couplings),
            'reserve_balance': f.reserve_balance,
            'golden_reserve_balance': f.golden_reserve_balance,
            'states': {s.value: states.get(s.value, 0) for s in ParticipationState},
            'pending_exits': self.pending_exits,
        }

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _time_step(self, dt: Optional[Real]) -> int:
        dt_fixed = self.params.default_dt if dt is None else to_fixed(dt)
        if dt_fixed <= 0:
            raise InvalidTimeStep(f"time step must be positive, got {dt}")
        return dt_fixed

    def _check_epoch(self, epoch_index: int) -> None:
        current = self._snapshot.epoch
        if epoch_index <= current:
            raise StaleEpoch(f"epoch {epoch_index} is not after current epoch {current}")
        if epoch_index > current + 1:
            raise InvalidEpoch(f"epoch {epoch_index} skips past {current + 1}")

    def _commit(self, snap: FieldSnapshot, events: List[FieldEvent]) -> None:
        self._snapshot = snap
        self.events.extend(events)

    def _refresh_aggregates(self, snap: FieldSnapshot) -> None:
        """Recompute R, Ψ, decentralization and totals after a membership change.

        R and Ψ are read from epoch-start phases, and are left alone once
        any participant has updated its phase this epoch, so every update
        within an epoch sees the same mean field.
        """
        participants = list(snap.participants.values())
        if not any(p.last_phase_update_epoch == snap.epoch for p in participants):
            r, psi = order_parameter(
                [(p.amplitude, p.epoch_start_phase) for p in participants])
            snap.field.order_parameter = r
            snap.field.global_phase = psi
        snap.field.decentralization_coefficient = decentralization_coefficient(
            (p.amplitude for p in participants), self.params.target_participant_count
        )
        snap.recount()

    def _advance(self, snap: FieldSnapshot, epoch_index: int,
                 override_psi: Optional[int] = None,
                 override_r: Optional[int] = None,
                 override_depth: Optional[int] = None) -> List[FieldEvent]:
        """Metrics, state machine, emissions and edge accrual for one epoch."""
        f = snap.field
        previous_r = f.order_parameter

        metrics = compute_field_metrics(
            snap, self.params.target_participant_count, self.params.network_depth_growth
        )
        f.epoch = epoch_index
        f.order_parameter = (
            metrics.order_parameter if override_r is None
            else clamp(override_r, 0, PRECISION)
        )
        f.global_phase = (
            metrics.global_phase if override_psi is None
            else normalize_phase(override_psi)
        )
        f.network_coherence_depth = (
            metrics.network_coherence_depth if override_depth is None
            else max(0, override_depth)
        )
        f.decentralization_coefficient = metrics.decentralization_coefficient
        f.total_weight = metrics.total_weight
        f.participant_count = metrics.participant_count

        events: List[FieldEvent] = []
        for pid in sorted(snap.participants):
            transition = evaluate_participant(
                snap.participants[pid], f.global_phase, epoch_index,
                self.params.stability_smoothing, self.params.integral_smoothing,
            )
            if transition is None:
                continue
            events.append(FieldEvent(
                EventType.STATE_TRANSITION, epoch_index, pid,
                {'from': transition.previous.value, 'to': transition.current.value},
            ))
            if transition.current == ParticipationState.GOLDEN:
                events.append(FieldEvent(EventType.GOLDEN_ACHIEVED, epoch_index, pid))

        awards = accrue_emissions(snap, self.params)
        accrue_shared_emissions(snap, awards)

        for p in snap.participants.values():
            p.epoch_start_phase = p.phase

        events.append(FieldEvent(EventType.FIELD_ADVANCED, epoch_index, details={
            'order_parameter': f.order_parameter,
            'global_phase': f.global_phase,
            'network_coherence_depth': f.network_coherence_depth,
            'emitted': sum(a.total_reward for a in awards.values()),
        }))
        if previous_r <= COHERENCE_PEAK_THRESHOLD < f.order_parameter:
            events.append(FieldEvent(EventType.COHERENCE_PEAK, epoch_index, details={
                'order_parameter': f.order_parameter,
            }))

        log.debug("Field advanced to epoch %d (R=%.4f, Ψ=%.4f, participants=%d)",
                  epoch_index, to_float(f.order_parameter), to_float(f.global_phase),
                  f.participant_count)
        return events

    def _process_exits(self, snap: FieldSnapshot):
        """Apply queued exits one at a time; failed exits stay queued."""
        events: List[FieldEvent] = []
        for pid, force in list(self._pending_exits.items()):
            trial = snap.copy()
            try:
                receipt = apply_decoherence(trial, pid, force)
            except NoParticipantRecord:
                log.warning("Dropping queued exit for unknown participant %s", pid)
                del self._pending_exits[pid]
                continue
            except CoherenceFieldError as e:
                log.warning("Queued exit for %s deferred: %s", pid, e)
                continue
            self._refresh_aggregates(trial)
            snap = trial
            del self._pending_exits[pid]
            events.append(FieldEvent(
                EventType.PARTICIPANT_DECOHERED, snap.epoch, pid, receipt.to_dict(),
            ))
        return snap, events


def create_engine(config: Optional[EngineConfig] = None,
                  on_event: Optional[Callable[[FieldEvent], None]] = None,
                  **overrides) -> CoherenceFieldEngine:
    """Factory function to create an engine.

    Without an explicit config, settings come from COHERENCE_FIELD_*
    environment variables with keyword overrides applied on top.
    """
    if config is None:
        config = EngineConfig.from_env(**overrides)
    return CoherenceFieldEngine(config=config, on_event=on_event)
