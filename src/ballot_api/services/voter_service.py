"""Voter registry service.

Lookup, listing, single and bulk creation, admin edits and status overrides,
deletion, and CSV export. Membership ids are matched case-insensitively
through ``membership_id_normalized``, which carries the unique index.
"""

import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from loguru import logger
from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ballot_api.core.clock import utc_now
from ballot_api.core.config import Settings
from ballot_api.core.errors import (
    DuplicateMembershipId,
    ImportRejected,
    InvalidVotingLocation,
    PhaseViolation,
    VoterLocked,
    VoterNotFound,
)
from ballot_api.lib.exporter import ExportResult, write_csv
from ballot_api.lib.importer import MIN_COLUMNS, VOTER_COLUMNS, normalize_membership_id, parse_voter_csv, validate_record
from ballot_api.lib.phase import ElectionPhase
from ballot_api.models.user import User
from ballot_api.models.voter import Voter, VoterStatus
from ballot_api.schemas.voter import VoterCreateRequest, VoterUpdateRequest
from ballot_api.services.audit_service import record_action

_UPDATABLE_VOTER_FIELDS: frozenset[str] = frozenset(
    {"membership_id", "name", "phone", "ward", "constituency", "county"}
)
_DELETABLE_PHASES = (ElectionPhase.SETUP, ElectionPhase.VERIFICATION)


@dataclass
class ImportRowError:
    row: int
    membership_id: str | None
    reason: str


@dataclass
class ImportSummary:
    imported: int = 0
    skipped: int = 0
    errors: list[ImportRowError] = field(default_factory=list)


async def lookup_voter(session: AsyncSession, membership_id: str) -> Voter:
    """Find a voter by membership id, ignoring case and surrounding whitespace.

    Raises:
        VoterNotFound: If no voter has that membership id.
    """
    result = await session.execute(
        select(Voter).where(Voter.membership_id_normalized == normalize_membership_id(membership_id))
    )
    voter = result.scalar_one_or_none()
    if voter is None:
        raise VoterNotFound()
    return voter


async def get_voter(session: AsyncSession, voter_id: uuid.UUID) -> Voter:
    """Raises VoterNotFound if ``voter_id`` does not exist."""
    voter = await session.get(Voter, voter_id)
    if voter is None:
        raise VoterNotFound("Voter not found.")
    return voter


async def list_voters(
    session: AsyncSession,
    *,
    status: str | None = None,
    q: str | None = None,
    ward: str | None = None,
    page: int = 1,
    page_size: int = 20,
) -> tuple[list[Voter], int]:
    """List voters with optional filters, ordered by membership id.

    Args:
        session: The database session.
        status: Exact status filter.
        q: Case-insensitive substring of name or membership id.
        ward: Exact ward filter.
        page: Page number (1-based).
        page_size: Items per page.

    Returns:
        Tuple of (voters, total count).
    """
    conditions = []
    if status:
        conditions.append(Voter.status == status.upper())
    if ward:
        conditions.append(Voter.ward == ward)
    if q:
        pattern = f"%{q.strip().lower()}%"
        conditions.append(or_(func.lower(Voter.name).like(pattern), Voter.membership_id_normalized.like(pattern)))

    total = (await session.execute(select(func.count(Voter.id)).where(*conditions))).scalar_one()
    offset = (page - 1) * page_size
    result = await session.execute(
        select(Voter).where(*conditions).order_by(Voter.membership_id_normalized).offset(offset).limit(page_size)
    )
    return list(result.scalars().all()), total


async def create_voter(session: AsyncSession, request: VoterCreateRequest, *, actor: User | None = None) -> Voter:
    """Add a member to the registry as UNVERIFIED.

    Raises:
        DuplicateMembershipId: If the membership id is already registered.
    """
    voter = Voter(
        id=uuid.uuid4(),
        membership_id=request.membership_id,
        membership_id_normalized=normalize_membership_id(request.membership_id),
        name=request.name,
        phone=request.phone,
        ward=request.ward,
        constituency=request.constituency,
        county=request.county,
        status=VoterStatus.UNVERIFIED.value,
    )
    session.add(voter)
    record_action(session, actor=actor, action="voter_create", resource_type="voter", resource_ids=[str(voter.id)])
    await _commit_unique(session)
    await session.refresh(voter)
    logger.info("Voter {} added to registry", voter.id)
    return voter


async def _commit_unique(session: AsyncSession) -> None:
    try:
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        raise DuplicateMembershipId() from e


def _iter_file_records(path: Path, batch_size: int) -> Iterable[tuple[int, dict[str, Any]]]:
    for chunk in parse_voter_csv(path, batch_size=batch_size):
        for record in chunk.to_dict("records"):
            yield int(record.pop("row_number")), record


def _iter_given_records(records: Iterable[dict[str, Any]]) -> Iterable[tuple[int, dict[str, Any]]]:
    for index, record in enumerate(records, start=2):
        yield index, {column: str(record.get(column) or "").strip() for column in VOTER_COLUMNS}


async def bulk_import_voters(
    session: AsyncSession,
    source: Path | Iterable[dict[str, Any]],
    *,
    strict: bool = False,
    batch_size: int = 1000,
    actor: User | None = None,
) -> ImportSummary:
    """Import registry rows from a CSV file or an iterable of records.

    Rows with fewer than three populated columns, failing validation, or
    repeating a membership id (within the file or against the registry) are
    skipped and reported. With ``strict`` any such row rejects the whole
    import. Accepted rows are committed in one transaction.

    Args:
        session: The database session.
        source: CSV path, or records keyed by the importer's column names.
        strict: Reject the import if any row fails.
        batch_size: Rows per chunk when reading a file.
        actor: The admin running the import.

    Returns:
        ImportSummary with counts and per-row errors.

    Raises:
        ImportRejected: In strict mode, if any row fails.
        DuplicateMembershipId: If a concurrent insert claimed one of the ids.
    """
    rows = _iter_file_records(source, batch_size) if isinstance(source, Path) else _iter_given_records(source)
    existing = set((await session.execute(select(Voter.membership_id_normalized))).scalars().all())

    summary = ImportSummary()
    pending: list[Voter] = []
    seen: set[str] = set()

    for row_number, record in rows:
        membership_id = record.get("membership_id") or None
        populated = sum(1 for column in VOTER_COLUMNS if record.get(column))
        if populated < MIN_COLUMNS:
            summary.errors.append(
                ImportRowError(row_number, membership_id, f"Row has fewer than {MIN_COLUMNS} columns")
            )
            continue
        is_valid, errors = validate_record(record)
        if not is_valid:
            summary.errors.append(ImportRowError(row_number, membership_id, "; ".join(errors)))
            continue
        normalized = normalize_membership_id(record["membership_id"])
        if normalized in existing or normalized in seen:
            summary.errors.append(ImportRowError(row_number, membership_id, "Duplicate membership ID"))
            continue
        seen.add(normalized)
        pending.append(
            Voter(
                id=uuid.uuid4(),
                membership_id=record["membership_id"],
                membership_id_normalized=normalized,
                name=record["name"],
                phone=record.get("phone") or "",
                ward=record.get("ward") or "",
                constituency=record.get("constituency") or "",
                county=record.get("county") or "",
                status=VoterStatus.UNVERIFIED.value,
            )
        )

    summary.skipped = len(summary.errors)
    if strict and summary.errors:
        logger.warning("Strict import rejected: {} invalid row(s)", summary.skipped)
        raise ImportRejected(
            f"Import rejected: {summary.skipped} row(s) failed validation.",
            errors=summary.errors,
        )

    session.add_all(pending)
    record_action(
        session,
        actor=actor,
        action="voter_import",
        resource_type="voter",
        request_metadata={"imported": len(pending), "skipped": summary.skipped, "strict": strict},
    )
    await _commit_unique(session)
    summary.imported = len(pending)
    logger.info("Voter import complete: {} imported, {} skipped", summary.imported, summary.skipped)
    return summary


async def update_voter(
    session: AsyncSession,
    voter_id: uuid.UUID,
    request: VoterUpdateRequest,
    *,
    actor: User | None = None,
) -> Voter:
    """Edit a voter's contact and demographic fields.

    Raises:
        VoterNotFound: If the voter does not exist.
        VoterLocked: If the voter has already voted.
        DuplicateMembershipId: If the new membership id is taken.
    """
    voter = await get_voter(session, voter_id)
    if voter.status == VoterStatus.VOTED:
        raise VoterLocked()

    updates = {k: v for k, v in request.model_dump(exclude_unset=True).items() if v is not None}
    for name, value in updates.items():
        if name in _UPDATABLE_VOTER_FIELDS:
            setattr(voter, name, value.strip() if isinstance(value, str) else value)
    if "membership_id" in updates:
        voter.membership_id_normalized = normalize_membership_id(voter.membership_id)

    record_action(
        session,
        actor=actor,
        action="voter_update",
        resource_type="voter",
        resource_ids=[str(voter.id)],
        request_metadata={"fields": sorted(updates)},
    )
    await _commit_unique(session)
    await session.refresh(voter)
    return voter


def _check_location(voting_location: str | None, settings: Settings) -> str | None:
    if voting_location is None or not voting_location.strip():
        return None
    allowed = settings.voting_location_list
    location = voting_location.strip()
    if not allowed:
        return location
    for candidate in allowed:
        if candidate.lower() == location.lower():
            return candidate
    raise InvalidVotingLocation(f"Unknown voting location: {location!r}")


async def manual_verify(
    session: AsyncSession,
    voter_id: uuid.UUID,
    *,
    settings: Settings,
    voting_location: str | None = None,
    actor: User | None = None,
) -> Voter:
    """Mark a voter VERIFIED without a code, clearing any outstanding challenge.

    Raises:
        VoterNotFound: If the voter does not exist.
        VoterLocked: If the voter has already voted.
        InvalidVotingLocation: If the location is not configured.
    """
    voter = await get_voter(session, voter_id)
    if voter.status == VoterStatus.VOTED:
        raise VoterLocked()
    location = _check_location(voting_location, settings) or voter.voting_location

    now = utc_now()
    result = await session.execute(
        update(Voter)
        .where(Voter.id == voter.id, Voter.status != VoterStatus.VOTED.value)
        .values(
            status=VoterStatus.VERIFIED.value,
            verified_at=now,
            voting_location=location,
            otc_code=None,
            otc_issued_at=None,
            updated_at=now,
        )
    )
    if result.rowcount == 0:
        await session.rollback()
        raise VoterLocked()
    record_action(session, actor=actor, action="voter_verify", resource_type="voter", resource_ids=[str(voter.id)])
    await session.commit()
    await session.refresh(voter)
    logger.info("Voter {} manually verified", voter.id)
    return voter


async def reset_voter(session: AsyncSession, voter_id: uuid.UUID, *, actor: User | None = None) -> Voter:
    """Return a VERIFIED voter to UNVERIFIED so they can register again.

    UNVERIFIED voters are returned unchanged.

    Raises:
        VoterNotFound: If the voter does not exist.
        VoterLocked: If the voter has already voted.
    """
    voter = await get_voter(session, voter_id)
    if voter.status == VoterStatus.VOTED:
        raise VoterLocked("Cannot reset a voter who has already cast a ballot.")
    if voter.status == VoterStatus.UNVERIFIED:
        return voter

    result = await session.execute(
        update(Voter)
        .where(Voter.id == voter.id, Voter.status == VoterStatus.VERIFIED.value)
        .values(
            status=VoterStatus.UNVERIFIED.value,
            voting_location=None,
            verified_at=None,
            otc_code=None,
            otc_issued_at=None,
            updated_at=utc_now(),
        )
    )
    if result.rowcount == 0:
        await session.rollback()
        raise VoterLocked("Cannot reset a voter who has already cast a ballot.")
    record_action(session, actor=actor, action="voter_reset", resource_type="voter", resource_ids=[str(voter.id)])
    await session.commit()
    await session.refresh(voter)
    logger.info("Voter {} reset to UNVERIFIED", voter.id)
    return voter


async def delete_voter(
    session: AsyncSession,
    voter_id: uuid.UUID,
    *,
    phase: ElectionPhase,
    actor: User | None = None,
) -> None:
    """Remove a voter from the registry.

    Raises:
        PhaseViolation: Outside SETUP and VERIFICATION.
        VoterNotFound: If the voter does not exist.
        VoterLocked: If the voter has already voted.
    """
    if phase not in _DELETABLE_PHASES:
        raise PhaseViolation("Voters can only be removed during setup or verification.")
    voter = await get_voter(session, voter_id)
    if voter.status == VoterStatus.VOTED:
        raise VoterLocked()
    await session.delete(voter)
    record_action(session, actor=actor, action="voter_delete", resource_type="voter", resource_ids=[str(voter_id)])
    await session.commit()
    logger.info("Voter {} deleted", voter_id)


async def export_voters_csv(session: AsyncSession, output_path: Path) -> ExportResult:
    """Write the registry to ``output_path`` as CSV, ordered by membership id."""
    result = await session.execute(select(Voter).order_by(Voter.membership_id_normalized))
    records = [
        {
            "membership_id": voter.membership_id,
            "name": voter.name,
            "phone": voter.phone,
            "ward": voter.ward,
            "constituency": voter.constituency,
            "county": voter.county,
            "status": voter.status,
        }
        for voter in result.scalars()
    ]
    count = write_csv(output_path, records)
    logger.info("Exported {} voter(s) to {}", count, output_path)
    return ExportResult(record_count=count, output_path=output_path, file_size_bytes=output_path.stat().st_size)
