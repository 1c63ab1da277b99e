"""Payroll run service - orchestrates calculation of a run for a period."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Iterable

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from payroll_runs.calculators.item_builder import build_run_item
from payroll_runs.calculators.line_builder import LineItemBuilder
from payroll_runs.calculators.types import (
    DEFAULT_RATE_TABLE,
    ConceptLineType,
    EmployeeCalculationError,
    EmployeeInputs,
    RunItemResult,
    StatutoryRateTable,
)
from payroll_runs.config import Settings, get_settings
from payroll_runs.models import PayrollRun, PayrollRunItem, PayrollRunItemLine
from payroll_runs.schemas import ItemFailure, RunDetail, RunSummary
from payroll_runs.services.audit import AuditRecorder
from payroll_runs.services.directory import PayrollDirectory, PeriodRecord
from payroll_runs.services.state_machine import (
    InvalidTransitionError,
    PayrollRunStateMachine,
    PayrollRunStatus,
)

logger = logging.getLogger(__name__)


class RunPhase(str, Enum):
    """Phases of a run calculation."""

    VALIDATING = "VALIDATING"
    NUMBERING = "NUMBERING"
    COMPUTING = "COMPUTING"
    COMMITTING = "COMMITTING"
    DONE = "DONE"
    FAILED = "FAILED"


class RunType(str, Enum):
    """Payroll run types."""

    REGULAR = "REGULAR"
    ADJUSTMENT = "ADJUSTMENT"
    RETROACTIVE = "RETROACTIVE"


# ===== Errors =====


class PayrollRunError(Exception):
    """Base for failures that abort a run calculation."""

    code = "PAYROLL_RUN_ERROR"
    phase = RunPhase.FAILED


class PeriodNotFoundError(PayrollRunError):
    code = "PERIOD_NOT_FOUND"
    phase = RunPhase.VALIDATING

    def __init__(self, period_id: int):
        self.period_id = period_id
        super().__init__(f"Payroll period {period_id} not found")


class PeriodClosedError(PayrollRunError):
    code = "PERIOD_CLOSED"
    phase = RunPhase.VALIDATING

    def __init__(self, period_id: int):
        self.period_id = period_id
        super().__init__(f"Payroll period {period_id} is closed")


class ConcurrentRunNumberConflictError(PayrollRunError):
    """Raised when the run number collides again after the automatic retry."""

    code = "RUN_NUMBER_CONFLICT"
    phase = RunPhase.NUMBERING

    def __init__(self, period_id: int, run_number: int):
        self.period_id = period_id
        self.run_number = run_number
        super().__init__(
            f"Run number {run_number} for period {period_id} was taken by a concurrent run"
        )


class RunComputationError(PayrollRunError):
    """Raised when computing items fails for reasons not isolated to one employee.

    The run stays in DRAFT with no items.
    """

    code = "RUN_COMPUTATION_FAILED"
    phase = RunPhase.COMPUTING

    def __init__(self, run_id: int, cause: BaseException):
        self.run_id = run_id
        self.cause = cause
        super().__init__(f"Computing payroll run {run_id} failed: {cause}")


class PartialCommitFailureError(PayrollRunError):
    """Raised when persisting a run fails. Everything staged was rolled back."""

    code = "PARTIAL_COMMIT_FAILURE"
    phase = RunPhase.COMMITTING

    def __init__(self, run_id: int, cause: BaseException):
        self.run_id = run_id
        self.cause = cause
        super().__init__(
            f"Committing payroll run {run_id} failed and was rolled back; "
            f"no items were persisted: {cause}"
        )


class PayrollRunService:
    """Service for calculating and voiding payroll runs.

    calculate_run phases:
    1) VALIDATING: period exists and is open
    2) NUMBERING: reserve the next run number with a DRAFT row (own transaction)
    3) COMPUTING: load inputs, build every employee's item concurrently
    4) COMMITTING: items, lines, run totals and audit event in one transaction
    5) DONE: return the run summary

    A failure after NUMBERING leaves the run in DRAFT with no items. A retry
    creates a new run with a new number; the stale DRAFT can be voided.
    """

    def __init__(
        self,
        session: AsyncSession,
        settings: Settings | None = None,
        rate_table: StatutoryRateTable = DEFAULT_RATE_TABLE,
    ):
        self.session = session
        self.settings = settings or get_settings()
        self.rate_table = rate_table
        self.directory = PayrollDirectory(session)
        self.audit = AuditRecorder(session)

    async def calculate_run(
        self,
        period_id: int,
        user_id: int | None = None,
        run_type: RunType = RunType.REGULAR,
        notes: str | None = None,
    ) -> RunSummary:
        """Calculate a new payroll run for a period.

        Raises:
            PeriodNotFoundError: If the period does not exist
            PeriodClosedError: If the period is closed
            ConcurrentRunNumberConflictError: If numbering collided twice
            RunComputationError: If computing failed or timed out
            PartialCommitFailureError: If persistence failed (rolled back)
        """
        period = await self._validate_period(period_id)
        run = await self._reserve_run(period, user_id, run_type, notes)
        # Rollback expires the instance; keep plain values for error paths
        run_id, run_number = run.id, run.run_number

        try:
            results, failures = await self._compute_items(period, run_id)
        except asyncio.CancelledError:
            logger.warning(
                "Payroll run %s (period %s, #%s) cancelled while computing; left in DRAFT",
                run_id, period.period_id, run_number,
            )
            await self.session.rollback()
            raise
        except Exception as e:
            logger.exception(
                "Payroll run %s failed in %s; left in DRAFT", run_id, RunPhase.COMPUTING.value
            )
            await self.session.rollback()
            raise RunComputationError(run_id, e) from e

        try:
            await self._commit_run(run, results, failures, user_id)
        except asyncio.CancelledError:
            logger.warning(
                "Payroll run %s (period %s, #%s) cancelled while committing; rolled back",
                run_id, period.period_id, run_number,
            )
            await self.session.rollback()
            raise
        except Exception as e:
            logger.exception(
                "Payroll run %s failed in %s; rolled back, left in DRAFT",
                run_id, RunPhase.COMMITTING.value,
            )
            await self.session.rollback()
            raise PartialCommitFailureError(run_id, e) from e

        await self.session.refresh(run)

        logger.info(
            "Payroll run %s (period %s, #%s) calculated: %d employees, net %s, %d failures",
            run.id, period.period_id, run.run_number,
            run.employee_count, run.total_net, len(failures),
        )
        return self.summarize(run, failures)

    # === Phases ===

    async def _validate_period(self, period_id: int) -> PeriodRecord:
        period = await self.directory.get_period(period_id)
        if period is None:
            raise PeriodNotFoundError(period_id)
        if period.is_closed:
            raise PeriodClosedError(period_id)
        return period

    async def _next_run_number(self, period_id: int) -> int:
        result = await self.session.execute(
            select(func.max(PayrollRun.run_number)).where(PayrollRun.period_id == period_id)
        )
        return (result.scalar() or 0) + 1

    async def _insert_draft(
        self,
        period: PeriodRecord,
        run_number: int,
        user_id: int | None,
        run_type: RunType,
        notes: str | None,
    ) -> PayrollRun:
        run = PayrollRun(
            period_id=period.period_id,
            company_id=period.company_id,
            run_number=run_number,
            run_type=RunType(run_type).value,
            status=PayrollRunStatus.DRAFT.value,
            total_gross=Decimal("0"),
            total_deductions=Decimal("0"),
            total_net=Decimal("0"),
            total_employer_cost=Decimal("0"),
            employee_count=0,
            created_by=user_id,
            notes=notes,
        )
        self.session.add(run)
        await self.session.commit()
        return run

    async def _reserve_run(
        self,
        period: PeriodRecord,
        user_id: int | None,
        run_type: RunType,
        notes: str | None,
    ) -> PayrollRun:
        """Insert the DRAFT run row, retrying once on a run number collision.

        The (period_id, run_number) unique constraint is what serializes
        concurrent reservations; the max+1 read is only a proposal.
        """
        run_number = await self._next_run_number(period.period_id)
        try:
            run = await self._insert_draft(period, run_number, user_id, run_type, notes)
        except IntegrityError:
            await self.session.rollback()
            logger.warning(
                "Run number %s for period %s already taken; retrying",
                run_number, period.period_id,
            )
            run_number = await self._next_run_number(period.period_id)
            try:
                run = await self._insert_draft(period, run_number, user_id, run_type, notes)
            except IntegrityError as e:
                await self.session.rollback()
                raise ConcurrentRunNumberConflictError(period.period_id, run_number) from e

        logger.info(
            "Reserved payroll run %s as #%s for period %s",
            run.id, run_number, period.period_id,
        )
        return run

    async def _compute_items(
        self, period: PeriodRecord, run_id: int
    ) -> tuple[list[RunItemResult], list[ItemFailure]]:
        """Build every employee's item. Per-employee errors become failures."""
        window = period.window
        inputs = await self.directory.load_employee_inputs(period)

        semaphore = asyncio.Semaphore(self.settings.worker_concurrency)

        async def compute(
            employee_inputs: EmployeeInputs,
        ) -> RunItemResult | ItemFailure | None:
            async with semaphore:
                try:
                    return await asyncio.to_thread(
                        build_run_item, employee_inputs, window, self.rate_table
                    )
                except EmployeeCalculationError as e:
                    employee_id = employee_inputs.employee.employee_id
                    logger.warning(
                        "Employee %s skipped in payroll run %s: %s", employee_id, run_id, e
                    )
                    return ItemFailure(employee_id=employee_id, code=e.code, message=str(e))

        async with asyncio.timeout(self.settings.run_timeout_seconds):
            async with asyncio.TaskGroup() as tg:
                tasks = [tg.create_task(compute(i)) for i in inputs]

        results: list[RunItemResult] = []
        failures: list[ItemFailure] = []
        for task in tasks:
            outcome = task.result()
            if isinstance(outcome, ItemFailure):
                failures.append(outcome)
            elif outcome is not None:
                results.append(outcome)

        logger.debug(
            "Payroll run %s computed: %d items, %d excluded, %d failures",
            run_id, len(results), len(inputs) - len(results) - len(failures), len(failures),
        )
        return results, failures

    async def _commit_run(
        self,
        run: PayrollRun,
        results: list[RunItemResult],
        failures: list[ItemFailure],
        user_id: int | None,
    ) -> None:
        """Persist items and lines and finalize the run in one transaction."""
        items = [self._to_item(run.id, r) for r in results]
        self.session.add_all(items)

        total_gross = sum((i.gross_total for i in items), Decimal("0"))
        total_deductions = sum((i.total_deductions for i in items), Decimal("0"))
        total_net = sum((i.net_salary for i in items), Decimal("0"))
        total_employer_cost = sum((i.employer_cost for i in items), Decimal("0"))
        calculated_at = datetime.now(timezone.utc)

        # Conditional on DRAFT so a concurrent void is never overwritten
        result = await self.session.execute(
            update(PayrollRun)
            .where(
                PayrollRun.id == run.id,
                PayrollRun.status == PayrollRunStatus.DRAFT.value,
            )
            .values(
                status=PayrollRunStatus.CALCULATED.value,
                total_gross=total_gross,
                total_deductions=total_deductions,
                total_net=total_net,
                total_employer_cost=total_employer_cost,
                employee_count=len(items),
                calculated_at=calculated_at,
                calculated_by=user_id,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise InvalidTransitionError(
                PayrollRunStatus.DRAFT.value,
                PayrollRunStatus.CALCULATED.value,
                "run was changed by another transaction",
            )

        self.audit.record(
            run,
            action=PayrollRunStatus.CALCULATED.value,
            actor_user_id=user_id,
            details={
                "runNumber": run.run_number,
                "employeeCount": len(items),
                "totalNet": str(total_net),
                "failedEmployees": [f.employee_id for f in failures],
                "engineVersion": self.settings.engine_version,
            },
        )
        await self.session.commit()

    @staticmethod
    def _to_item(run_id: int, result: RunItemResult) -> PayrollRunItem:
        snapshot = result.snapshot
        proration = result.proration
        return PayrollRunItem(
            run_id=run_id,
            employee_id=snapshot.employee_id,
            employee_name=snapshot.employee_name,
            union_id=snapshot.union_id,
            union_name=snapshot.union_name,
            category_id=snapshot.category_id,
            category_name=snapshot.category_name,
            sector_id=snapshot.sector_id,
            sector_name=snapshot.sector_name,
            base_salary=snapshot.base_salary,
            hire_date=snapshot.hire_date,
            days_worked=proration.days_worked,
            days_in_period=proration.days_in_period,
            prorate_factor=LineItemBuilder.round_factor(proration.prorate_factor),
            gross_remunerative=result.gross_remunerative,
            gross_total=result.gross_total,
            total_deductions=result.total_deductions,
            advances_discounted=result.advances_discounted,
            net_salary=result.net_salary,
            employer_cost=result.employer_cost.total,
            lines=[
                PayrollRunItemLine(
                    component_id=line.component_id,
                    code=line.code,
                    name=line.name,
                    type=line.line_type.value,
                    sort_order=line.sort_order,
                    quantity=line.quantity,
                    unit_amount=line.unit_amount,
                    base_amount=line.base_amount,
                    calculated_amount=line.calculated_amount,
                    final_amount=line.final_amount,
                    formula=line.formula,
                    line_metadata=line.metadata(),
                )
                for line in result.lines
            ],
        )

    # === Reads & follow-up operations ===

    async def get_run(self, run_id: int) -> PayrollRun | None:
        """Load a run with its items and lines."""
        result = await self.session.execute(
            select(PayrollRun)
            .where(PayrollRun.id == run_id)
            .options(selectinload(PayrollRun.items).selectinload(PayrollRunItem.lines))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_run_detail(self, run_id: int) -> RunDetail | None:
        run = await self.get_run(run_id)
        if run is None:
            return None
        return RunDetail.model_validate(run)

    @staticmethod
    def summarize(run: PayrollRun, failures: Iterable[ItemFailure] = ()) -> RunSummary:
        """Build the caller-facing summary of a run."""
        return RunSummary.model_validate(run).model_copy(update={"failures": list(failures)})

    async def verify_run_totals(self, run_id: int) -> list[str]:
        """Check that a run's totals are the fold of its items and lines.

        Returns list of error messages (empty if reconciled).
        """
        run = await self.get_run(run_id)
        if run is None:
            return [f"Payroll run {run_id} not found"]

        errors: list[str] = []
        zero = Decimal("0")

        for item in run.items:
            earnings = sum(
                (l.final_amount for l in item.lines if l.type == ConceptLineType.EARNING.value),
                zero,
            )
            deductions = sum(
                (l.final_amount for l in item.lines if l.type == ConceptLineType.DEDUCTION.value),
                zero,
            )
            if earnings != item.gross_total:
                errors.append(
                    f"Employee {item.employee_id}: gross {item.gross_total}, lines sum to {earnings}"
                )
            if deductions != item.total_deductions:
                errors.append(
                    f"Employee {item.employee_id}: deductions {item.total_deductions}, "
                    f"lines sum to {deductions}"
                )
            if item.gross_total - item.total_deductions != item.net_salary:
                errors.append(
                    f"Employee {item.employee_id}: net {item.net_salary} != gross - deductions"
                )

        expected = {
            "total_gross": sum((i.gross_total for i in run.items), zero),
            "total_deductions": sum((i.total_deductions for i in run.items), zero),
            "total_net": sum((i.net_salary for i in run.items), zero),
            "total_employer_cost": sum((i.employer_cost for i in run.items), zero),
        }
        for field_name, value in expected.items():
            actual = getattr(run, field_name)
            if actual != value:
                errors.append(f"Run {field_name} is {actual}, items sum to {value}")
        if run.employee_count != len(run.items):
            errors.append(
                f"Run employee_count is {run.employee_count}, found {len(run.items)} items"
            )

        return errors

    async def void_run(
        self,
        run_id: int,
        reason: str,
        user_id: int | None = None,
    ) -> RunSummary:
        """Void a run that has not been paid. Items are kept as they were."""
        run = await self.get_run(run_id)
        if run is None:
            raise ValueError(f"Payroll run {run_id} not found")

        to_status = PayrollRunStatus.VOIDED.value
        if not reason or not reason.strip():
            raise InvalidTransitionError(run.status, to_status, "Void requires a reason")
        PayrollRunStateMachine.validate_transition(run.status, to_status)

        from_status = run.status
        run.status = to_status
        run.voided_at = datetime.now(timezone.utc)
        run.voided_by = user_id
        run.void_reason = reason.strip()

        self.audit.record(
            run,
            action=to_status,
            actor_user_id=user_id,
            details={"reason": run.void_reason, "fromStatus": from_status},
        )
        await self.session.commit()

        logger.info("Payroll run %s voided from %s: %s", run.id, from_status, run.void_reason)
        return self.summarize(run)
