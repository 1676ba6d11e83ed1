"""
Database abstraction for Postgres and an in-memory test implementation.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, Optional, Protocol

from sqlalchemy import (
    JSON,
    Column,
    Float,
    Integer,
    String,
    create_engine,
    func,
    select,
)
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from shared.types import (
    AnalysisSnapshot,
    BusFactorResult,
    CompletedExecution,
    KnowledgeCategory,
    KnowledgeContribution,
    Person,
    Procedure,
    TaskStatus,
    UserRole,
)


class DbClient(Protocol):
    """Interface for database access."""

    def create_organization(self, name: str) -> "OrganizationRecord":
        ...

    def get_organization(self, org_id: str) -> Optional["OrganizationRecord"]:
        ...

    def add_person(self, org_id: str, person: Person) -> None:
        ...

    def add_procedure(self, org_id: str, procedure: Procedure) -> None:
        ...

    def record_task(
        self,
        org_id: str,
        procedure_id: str,
        assignee_id: str,
        status: TaskStatus = TaskStatus.COMPLETED,
    ) -> str:
        ...

    def add_knowledge_fragment(
        self,
        org_id: str,
        person_id: str,
        category: KnowledgeCategory,
        content: str = "",
    ) -> str:
        ...

    def list_procedures(self, org_id: str) -> list[Procedure]:
        ...

    def list_people(self, org_id: str) -> list[Person]:
        ...

    def list_completed_executions(self, org_id: str) -> list[CompletedExecution]:
        ...

    def list_knowledge_contributions(
        self, org_id: str
    ) -> list[KnowledgeContribution]:
        ...

    def list_owner_emails(self, org_id: str) -> list[str]:
        ...

    def save_analysis(self, snapshot: AnalysisSnapshot) -> None:
        ...

    def get_latest_analysis(self, org_id: str) -> Optional[AnalysisSnapshot]:
        ...

    def list_due_organizations(self, now: float) -> list[str]:
        ...


@dataclass
class OrganizationRecord:
    org_id: str
    name: str
    created_at: float = field(default_factory=lambda: time.time())

    def as_dict(self) -> dict:
        return {
            "org_id": self.org_id,
            "name": self.name,
            "created_at": self.created_at,
        }


@dataclass
class TaskRecord:
    task_id: str
    org_id: str
    procedure_id: str
    assignee_id: str
    status: TaskStatus
    completed_at: Optional[float] = None


@dataclass
class FragmentRecord:
    fragment_id: str
    org_id: str
    person_id: str
    category: KnowledgeCategory
    content: str = ""
    extracted_at: float = field(default_factory=lambda: time.time())


class InMemoryDbClient:
    """Simple in-memory database for development and tests."""

    def __init__(self):
        self.organizations: Dict[str, OrganizationRecord] = {}
        self.people: Dict[tuple[str, str], Person] = {}
        self.procedures: Dict[str, tuple[str, Procedure]] = {}
        self.tasks: Dict[str, TaskRecord] = {}
        self.fragments: Dict[str, FragmentRecord] = {}
        self.analyses: list[AnalysisSnapshot] = []

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.organizations.clear()
        self.people.clear()
        self.procedures.clear()
        self.tasks.clear()
        self.fragments.clear()
        self.analyses.clear()

    def create_organization(self, name: str) -> OrganizationRecord:
        record = OrganizationRecord(org_id=str(uuid.uuid4()), name=name)
        self.organizations[record.org_id] = record
        return record

    def get_organization(self, org_id: str) -> Optional[OrganizationRecord]:
        return self.organizations.get(org_id)

    def add_person(self, org_id: str, person: Person) -> None:
        self.people[(org_id, person.person_id)] = person

    def add_procedure(self, org_id: str, procedure: Procedure) -> None:
        self.procedures[procedure.procedure_id] = (org_id, procedure)

    def record_task(
        self,
        org_id: str,
        procedure_id: str,
        assignee_id: str,
        status: TaskStatus = TaskStatus.COMPLETED,
    ) -> str:
        task_id = uuid.uuid4().hex
        self.tasks[task_id] = TaskRecord(
            task_id=task_id,
            org_id=org_id,
            procedure_id=procedure_id,
            assignee_id=assignee_id,
            status=status,
            completed_at=time.time() if status == TaskStatus.COMPLETED else None,
        )
        return task_id

    def add_knowledge_fragment(
        self,
        org_id: str,
        person_id: str,
        category: KnowledgeCategory,
        content: str = "",
    ) -> str:
        fragment_id = uuid.uuid4().hex
        self.fragments[fragment_id] = FragmentRecord(
            fragment_id=fragment_id,
            org_id=org_id,
            person_id=person_id,
            category=category,
            content=content,
        )
        return fragment_id

    def list_procedures(self, org_id: str) -> list[Procedure]:
        return [
            procedure
            for owner, procedure in self.procedures.values()
            if owner == org_id
        ]

    def list_people(self, org_id: str) -> list[Person]:
        return [person for (owner, _), person in self.people.items() if owner == org_id]

    def list_completed_executions(self, org_id: str) -> list[CompletedExecution]:
        executions = {
            CompletedExecution(task.procedure_id, task.assignee_id)
            for task in self.tasks.values()
            if task.org_id == org_id and task.status == TaskStatus.COMPLETED
        }
        return sorted(executions, key=lambda e: (e.procedure_id, e.person_id))

    def list_knowledge_contributions(
        self, org_id: str
    ) -> list[KnowledgeContribution]:
        contributions = {
            KnowledgeContribution(fragment.person_id, fragment.category)
            for fragment in self.fragments.values()
            if fragment.org_id == org_id
        }
        return sorted(contributions, key=lambda c: (c.person_id, c.category.value))

    def list_owner_emails(self, org_id: str) -> list[str]:
        return [
            person.email
            for (owner, _), person in self.people.items()
            if owner == org_id and person.role == UserRole.OWNER and person.email
        ]

    def save_analysis(self, snapshot: AnalysisSnapshot) -> None:
        self.analyses.append(snapshot)

    def get_latest_analysis(self, org_id: str) -> Optional[AnalysisSnapshot]:
        matches = [a for a in self.analyses if a.org_id == org_id]
        if not matches:
            return None
        return max(matches, key=lambda a: a.calculated_at)

    def list_due_organizations(self, now: float) -> list[str]:
        due: list[str] = []
        for org_id in self.organizations:
            snapshots = [a for a in self.analyses if a.org_id == org_id]
            if not snapshots:
                due.append(org_id)
                continue
            if max(a.next_calculation_due for a in snapshots) <= now:
                due.append(org_id)
        return due


class PostgresDbClient:
    """
    SQLAlchemy-backed client. Any SQLAlchemy URL works; tests use SQLite.
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for PostgresDbClient")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    def create_organization(self, name: str) -> OrganizationRecord:
        record = OrganizationRecord(org_id=str(uuid.uuid4()), name=name)
        with self.Session() as session:
            session.add(
                OrganizationRow(
                    id=record.org_id, name=record.name, created_at=record.created_at
                )
            )
            session.commit()
        return record

    def get_organization(self, org_id: str) -> Optional[OrganizationRecord]:
        with self.Session() as session:
            row = session.get(OrganizationRow, org_id)
            if not row:
                return None
            return OrganizationRecord(
                org_id=row.id, name=row.name, created_at=row.created_at
            )

    def add_person(self, org_id: str, person: Person) -> None:
        with self.Session() as session:
            session.add(
                UserRow(
                    id=person.person_id,
                    org_id=org_id,
                    email=person.email,
                    role=person.role.value,
                    competencies=sorted(person.competencies),
                    created_at=time.time(),
                )
            )
            session.commit()

    def add_procedure(self, org_id: str, procedure: Procedure) -> None:
        with self.Session() as session:
            session.add(
                RunbookRow(
                    id=procedure.procedure_id,
                    org_id=org_id,
                    title=procedure.title,
                    category=procedure.category.value,
                )
            )
            session.commit()

    def record_task(
        self,
        org_id: str,
        procedure_id: str,
        assignee_id: str,
        status: TaskStatus = TaskStatus.COMPLETED,
    ) -> str:
        task_id = uuid.uuid4().hex
        with self.Session() as session:
            session.add(
                TaskRow(
                    id=task_id,
                    org_id=org_id,
                    runbook_id=procedure_id,
                    assignee_id=assignee_id,
                    status=status.value,
                    completed_at=(
                        time.time() if status == TaskStatus.COMPLETED else None
                    ),
                )
            )
            session.commit()
        return task_id

    def add_knowledge_fragment(
        self,
        org_id: str,
        person_id: str,
        category: KnowledgeCategory,
        content: str = "",
    ) -> str:
        fragment_id = uuid.uuid4().hex
        with self.Session() as session:
            session.add(
                KnowledgeFragmentRow(
                    id=fragment_id,
                    org_id=org_id,
                    user_id=person_id,
                    category=category.value,
                    content=content,
                    extracted_at=time.time(),
                )
            )
            session.commit()
        return fragment_id

    def list_procedures(self, org_id: str) -> list[Procedure]:
        with self.Session() as session:
            stmt = (
                select(RunbookRow)
                .where(RunbookRow.org_id == org_id)
                .order_by(RunbookRow.seq.asc())
            )
            return [
                Procedure(
                    procedure_id=row.id,
                    category=KnowledgeCategory(row.category),
                    title=row.title,
                )
                for row in session.execute(stmt).scalars()
            ]

    def list_people(self, org_id: str) -> list[Person]:
        roles = [role.value for role in UserRole]
        with self.Session() as session:
            stmt = (
                select(UserRow)
                .where(UserRow.org_id == org_id, UserRow.role.in_(roles))
                .order_by(UserRow.created_at.asc())
            )
            return [
                Person(
                    person_id=row.id,
                    competencies=frozenset(row.competencies or []),
                    role=UserRole(row.role),
                    email=row.email,
                )
                for row in session.execute(stmt).scalars()
            ]

    def list_completed_executions(self, org_id: str) -> list[CompletedExecution]:
        with self.Session() as session:
            stmt = (
                select(TaskRow.runbook_id, TaskRow.assignee_id)
                .where(
                    TaskRow.org_id == org_id,
                    TaskRow.status == TaskStatus.COMPLETED.value,
                )
                .distinct()
                .order_by(TaskRow.runbook_id, TaskRow.assignee_id)
            )
            return [
                CompletedExecution(procedure_id=runbook_id, person_id=assignee_id)
                for runbook_id, assignee_id in session.execute(stmt)
            ]

    def list_knowledge_contributions(
        self, org_id: str
    ) -> list[KnowledgeContribution]:
        with self.Session() as session:
            stmt = (
                select(KnowledgeFragmentRow.user_id, KnowledgeFragmentRow.category)
                .where(KnowledgeFragmentRow.org_id == org_id)
                .distinct()
                .order_by(KnowledgeFragmentRow.user_id, KnowledgeFragmentRow.category)
            )
            return [
                KnowledgeContribution(
                    person_id=user_id, category=KnowledgeCategory(category)
                )
                for user_id, category in session.execute(stmt)
            ]

    def list_owner_emails(self, org_id: str) -> list[str]:
        with self.Session() as session:
            stmt = select(UserRow.email).where(
                UserRow.org_id == org_id,
                UserRow.role == UserRole.OWNER.value,
                UserRow.email != None,
            )
            return list(session.execute(stmt).scalars())

    def save_analysis(self, snapshot: AnalysisSnapshot) -> None:
        payload = snapshot.result.as_dict()
        with self.Session() as session:
            session.add(
                BusFactorAnalysisRow(
                    id=snapshot.analysis_id,
                    org_id=snapshot.org_id,
                    scores=payload["scores"],
                    critical_gaps=payload["criticalGaps"],
                    bus_factor=payload["busFactor"],
                    calculated_at=snapshot.calculated_at,
                    next_calculation_due=snapshot.next_calculation_due,
                )
            )
            session.commit()

    def get_latest_analysis(self, org_id: str) -> Optional[AnalysisSnapshot]:
        with self.Session() as session:
            stmt = (
                select(BusFactorAnalysisRow)
                .where(BusFactorAnalysisRow.org_id == org_id)
                .order_by(BusFactorAnalysisRow.calculated_at.desc())
                .limit(1)
            )
            row = session.execute(stmt).scalar_one_or_none()
            if not row:
                return None
            return self._to_snapshot(row)

    def list_due_organizations(self, now: float) -> list[str]:
        with self.Session() as session:
            latest_due = (
                select(
                    BusFactorAnalysisRow.org_id.label("org_id"),
                    func.max(BusFactorAnalysisRow.next_calculation_due).label(
                        "next_due"
                    ),
                )
                .group_by(BusFactorAnalysisRow.org_id)
                .subquery()
            )
            stmt = (
                select(OrganizationRow.id)
                .outerjoin(latest_due, latest_due.c.org_id == OrganizationRow.id)
                .where(
                    (latest_due.c.next_due == None) | (latest_due.c.next_due <= now)
                )
                .order_by(OrganizationRow.created_at.asc())
            )
            return list(session.execute(stmt).scalars())

    @staticmethod
    def _to_snapshot(row: "BusFactorAnalysisRow") -> AnalysisSnapshot:
        result = BusFactorResult.from_dict(
            {
                "scores": row.scores,
                "criticalGaps": row.critical_gaps,
                "busFactor": row.bus_factor,
            }
        )
        return AnalysisSnapshot(
            analysis_id=row.id,
            org_id=row.org_id,
            result=result,
            calculated_at=row.calculated_at,
            next_calculation_due=row.next_calculation_due,
        )


Base = declarative_base()


class OrganizationRow(Base):
    __tablename__ = "organizations"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    created_at = Column(Float, nullable=False)


class UserRow(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True)
    org_id = Column(String, nullable=False, index=True)
    email = Column(String, nullable=True)
    role = Column(String, nullable=False)
    competencies = Column(JSON, nullable=False, default=list)
    created_at = Column(Float, nullable=False)


class RunbookRow(Base):
    __tablename__ = "runbooks"

    # Insertion order; keeps gap ordering stable between snapshots.
    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String, nullable=False, unique=True)
    org_id = Column(String, nullable=False, index=True)
    title = Column(String, nullable=False)
    category = Column(String, nullable=False, index=True)


class TaskRow(Base):
    __tablename__ = "tasks"

    id = Column(String, primary_key=True)
    org_id = Column(String, nullable=False, index=True)
    runbook_id = Column(String, nullable=False, index=True)
    assignee_id = Column(String, nullable=False)
    status = Column(String, nullable=False, index=True)
    completed_at = Column(Float, nullable=True)


class KnowledgeFragmentRow(Base):
    __tablename__ = "knowledge_fragments"

    id = Column(String, primary_key=True)
    org_id = Column(String, nullable=False, index=True)
    user_id = Column(String, nullable=False)
    category = Column(String, nullable=False)
    content = Column(String, nullable=False, default="")
    extracted_at = Column(Float, nullable=False)


class BusFactorAnalysisRow(Base):
    __tablename__ = "bus_factor_analysis"

    id = Column(String, primary_key=True)
    org_id = Column(String, nullable=False, index=True)
    scores = Column(JSON, nullable=False)
    critical_gaps = Column(JSON, nullable=False)
    bus_factor = Column(Integer, nullable=False)
    calculated_at = Column(Float, nullable=False)
    next_calculation_due = Column(Float, nullable=False)
