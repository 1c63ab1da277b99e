"""Pytest fixtures for payroll run tests."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import AsyncGenerator

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from payroll_runs.config import Settings
from payroll_runs.database import create_schema, get_engine, make_session_factory
from payroll_runs.models import (
    Employee,
    EmployeeFixedConcept,
    LaborUnion,
    PayrollPeriod,
    PayrollVariableConcept,
    SalaryComponent,
    UnionCategory,
    WorkSector,
)
from payroll_runs.services import PayrollRunService

# In-memory SQLite shared by every session of a test through StaticPool
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

COMPANY_ID = 1
JUNE_START = date(2025, 6, 1)
JUNE_END = date(2025, 6, 30)


@dataclass
class SeededPayroll:
    """Ids of the rows created by the ``seeded`` fixture."""

    company_id: int
    period_id: int
    closed_period_id: int
    empty_period_id: int
    union_id: int
    category_id: int
    other_category_id: int
    sector_id: int
    ana_id: int
    bruno_id: int
    carla_id: int
    diego_id: int
    basic_id: int
    overtime_id: int
    travel_id: int
    union_fee_id: int


@pytest.fixture
def settings() -> Settings:
    return Settings(
        database_url=TEST_DATABASE_URL,
        engine_version="test",
        worker_concurrency=4,
        run_timeout_seconds=None,
        debug=False,
    )


@pytest.fixture
async def engine():
    """Create a fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
    )
    await create_schema(engine)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return make_session_factory(engine)


@pytest.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Session used by the service under test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def service(session, settings) -> PayrollRunService:
    return PayrollRunService(session, settings=settings)


async def seed_payroll(session_factory: async_sessionmaker[AsyncSession]) -> SeededPayroll:
    """Seed one company with a June 2025 period and four employees.

    - Ana: employed all month; basic 300000, 10h overtime at 2000, a
      non-remunerative travel allowance of 5000, union fee 3000
    - Bruno: hired June 10; basic 300000 (prorated to 0.7)
    - Carla: terminated May 20, before the period starts
    - Diego: inactive, never listed
    """
    async with session_factory() as s:
        union = LaborUnion(company_id=COMPANY_ID, name="UOCRA")
        sector = WorkSector(company_id=COMPANY_ID, name="Obra")
        s.add_all([union, sector])
        await s.flush()

        category = UnionCategory(union_id=union.id, name="Oficial")
        other_category = UnionCategory(union_id=union.id, name="Ayudante")
        s.add_all([category, other_category])
        await s.flush()

        period = PayrollPeriod(
            company_id=COMPANY_ID,
            period_type="MONTHLY",
            year=2025,
            month=6,
            period_start=JUNE_START,
            period_end=JUNE_END,
            business_days=21,
        )
        closed_period = PayrollPeriod(
            company_id=COMPANY_ID,
            period_type="MONTHLY",
            year=2025,
            month=5,
            period_start=date(2025, 5, 1),
            period_end=date(2025, 5, 31),
            business_days=21,
            is_closed=True,
        )
        empty_period = PayrollPeriod(
            company_id=2,
            period_type="QUINCENA_1",
            year=2025,
            month=6,
            period_start=JUNE_START,
            period_end=date(2025, 6, 15),
            business_days=10,
        )
        s.add_all([period, closed_period, empty_period])

        def employee(first: str, last: str, **kwargs) -> Employee:
            kwargs.setdefault("base_salary", Decimal("300000"))
            kwargs.setdefault("union_category_id", category.id)
            kwargs.setdefault("work_sector_id", sector.id)
            return Employee(company_id=COMPANY_ID, first_name=first, last_name=last, **kwargs)

        ana = employee("Ana", "Gomez", hire_date=date(2020, 1, 15))
        bruno = employee("Bruno", "Diaz", hire_date=date(2025, 6, 10))
        carla = employee(
            "Carla", "Ruiz", hire_date=date(2019, 3, 1), termination_date=date(2025, 5, 20)
        )
        diego = employee("Diego", "Sosa", hire_date=date(2018, 1, 1), is_active=False)
        s.add_all([ana, bruno, carla, diego])

        basic = SalaryComponent(
            company_id=COMPANY_ID, code="BASIC", name="Sueldo basico", type="EARNING", sort_order=1
        )
        overtime = SalaryComponent(
            company_id=COMPANY_ID, code="HE50", name="Horas extra 50%", type="EARNING", sort_order=2
        )
        travel = SalaryComponent(
            company_id=COMPANY_ID,
            code="VIATICO",
            name="Viatico",
            type="EARNING",
            sort_order=3,
            is_remunerative=False,
            affects_employee_contributions=False,
            affects_employer_contributions=False,
        )
        union_fee = SalaryComponent(
            company_id=COMPANY_ID,
            code="CUOTA_SIND",
            name="Cuota sindical",
            type="DEDUCTION",
            sort_order=10,
            is_remunerative=False,
        )
        s.add_all([basic, overtime, travel, union_fee])
        await s.flush()

        def fixed(emp: Employee, component: SalaryComponent, amount: str) -> EmployeeFixedConcept:
            return EmployeeFixedConcept(
                employee_id=emp.id,
                component_id=component.id,
                quantity=Decimal("1"),
                unit_amount=Decimal(amount),
                effective_from=date(2018, 1, 1),
            )

        s.add_all(
            [
                fixed(ana, basic, "300000"),
                fixed(ana, union_fee, "3000"),
                fixed(bruno, basic, "300000"),
                fixed(carla, basic, "300000"),
                fixed(diego, basic, "300000"),
                # Expired before the period; never applies
                EmployeeFixedConcept(
                    employee_id=ana.id,
                    component_id=travel.id,
                    quantity=Decimal("1"),
                    unit_amount=Decimal("99999"),
                    effective_from=date(2024, 1, 1),
                    effective_to=date(2025, 5, 31),
                ),
                PayrollVariableConcept(
                    period_id=period.id,
                    employee_id=ana.id,
                    component_id=overtime.id,
                    quantity=Decimal("10"),
                    unit_amount=Decimal("2000"),
                    status="APPROVED",
                ),
                PayrollVariableConcept(
                    period_id=period.id,
                    employee_id=ana.id,
                    component_id=travel.id,
                    quantity=Decimal("1"),
                    unit_amount=Decimal("5000"),
                    status="APPROVED",
                ),
                # Not approved yet; ignored
                PayrollVariableConcept(
                    period_id=period.id,
                    employee_id=bruno.id,
                    component_id=overtime.id,
                    quantity=Decimal("4"),
                    unit_amount=Decimal("2000"),
                    status="PENDING",
                ),
            ]
        )
        await s.commit()

        return SeededPayroll(
            company_id=COMPANY_ID,
            period_id=period.id,
            closed_period_id=closed_period.id,
            empty_period_id=empty_period.id,
            union_id=union.id,
            category_id=category.id,
            other_category_id=other_category.id,
            sector_id=sector.id,
            ana_id=ana.id,
            bruno_id=bruno.id,
            carla_id=carla.id,
            diego_id=diego.id,
            basic_id=basic.id,
            overtime_id=overtime.id,
            travel_id=travel.id,
            union_fee_id=union_fee.id,
        )


@pytest.fixture
async def seeded(session_factory) -> SeededPayroll:
    return await seed_payroll(session_factory)


@pytest.fixture
async def file_session_factory(
    tmp_path, settings
) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Sessions on a file-backed database, one connection each.

    The in-memory StaticPool shares a single connection, so overlapping
    transactions need a real file.
    """
    engine = get_engine(
        dataclasses.replace(settings, database_url=f"sqlite+aiosqlite:///{tmp_path}/payroll.db")
    )
    await create_schema(engine)

    yield make_session_factory(engine)

    await engine.dispose()


@pytest.fixture
async def file_seeded(file_session_factory) -> SeededPayroll:
    return await seed_payroll(file_session_factory)
