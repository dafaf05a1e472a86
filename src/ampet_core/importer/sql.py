"""
Account and record collaborators backed by the ampet-core database.

Tutor accounts are ``Profile`` rows and pet records are ``Pet`` rows. Every
database or validation failure is raised as ``CollaboratorError`` so the row
importer can record it as the row's failure reason.

The temporary credential of a new account is validated but not stored; it
belongs to the identity provider that sends the invitation.
"""

import logging
import uuid
from typing import Dict, List, Optional

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import (
    DisconnectionError,
    IntegrityError,
    OperationalError,
    SQLAlchemyError,
)

from ..database.session import SessionManager
from ..exceptions import (
    CollaboratorError,
    ConnectionException,
    DatabaseException,
    format_validation_errors,
    handle_database_retry,
)
from ..models.pet import Pet, PetSpecies
from ..models.profile import Profile, ProfileStatus, UserRole
from ..schemas.pet import PetCreate
from ..schemas.profile import TutorAccountCreate
from ..utils.validation import normalize_email, validate_phone
from .collaborators import Account, PetRecord

logger = logging.getLogger(__name__)

ACCOUNT_EXISTS_REASON = "account already exists"

# PostgreSQL names the constraint, SQLite names the column
EMAIL_CONSTRAINT_MARKERS = ("uq_profiles_email", "profiles.email")


def database_reason(error: SQLAlchemyError) -> str:
    """Message of the driver error behind a SQLAlchemy exception."""
    return str(getattr(error, "orig", None) or error)


def account_integrity_reason(error: IntegrityError) -> str:
    """
    Reason for a failed profile insert.

    Only a clash on the email constraint means the account already exists;
    any other constraint keeps the database message.
    """
    message = database_reason(error)
    if any(marker in message for marker in EMAIL_CONSTRAINT_MARKERS):
        return ACCOUNT_EXISTS_REASON
    return message


def validation_reason(error: ValidationError) -> str:
    """Flatten pydantic errors into a single ``field: message`` string."""
    formatted: Dict[str, List[str]] = format_validation_errors(error.errors())
    return "; ".join(
        f"{field}: {', '.join(messages)}" for field, messages in formatted.items()
    )


def to_account(profile: Profile) -> Account:
    return Account(
        id=profile.id,
        email=profile.email,
        full_name=profile.full_name,
        phone=profile.phone,
    )


def to_record(pet: Pet) -> PetRecord:
    return PetRecord(
        id=pet.id,
        tutor_id=pet.tutor_id,
        name=pet.name,
        species=pet.species,
        breed=pet.breed,
        microchip_id=pet.microchip_id,
        registration_source=pet.registration_source,
        birth_date=pet.birth_date,
        weight_kg=pet.weight_kg,
        rga_id=pet.rga_id,
        notes=pet.notes,
    )


class SqlAccountDirectory:
    """Tutor accounts stored as ``Profile`` rows."""

    def __init__(self, session_manager: SessionManager):
        self.session_manager = session_manager

    async def find_account_by_contact(self, identifier: str) -> Optional[Account]:
        try:
            profile = await self._find_profile(normalize_email(identifier))
        except DatabaseException as e:
            raise CollaboratorError(
                f"account lookup failed: {e.original_error or e.message}",
                operation="find_account_by_contact",
                original_error=e,
            )
        return to_account(profile) if profile is not None else None

    @handle_database_retry(
        "find_account_by_contact", max_retries=2, base_delay=0.5, logger=logger
    )
    async def _find_profile(self, email: str) -> Optional[Profile]:
        try:
            async with self.session_manager.get_session() as session:
                result = await session.execute(
                    select(Profile).where(
                        Profile.email == email, Profile.create_query_filter_active()
                    )
                )
                return result.scalar_one_or_none()
        except (OperationalError, DisconnectionError) as e:
            raise ConnectionException("Account lookup failed", original_error=e)
        except SQLAlchemyError as e:
            raise DatabaseException(
                "Account lookup failed", original_error=e, max_retries=0
            )

    async def create_account(
        self,
        identifier: str,
        display_name: str,
        temporary_credential: str,
        role: UserRole = UserRole.TUTOR,
        invited_by: Optional[uuid.UUID] = None,
    ) -> Account:
        try:
            payload = TutorAccountCreate(
                email=identifier,
                full_name=display_name,
                temporary_credential=temporary_credential,
                role=role,
                invited_by=invited_by,
            )
        except ValidationError as e:
            raise CollaboratorError(
                validation_reason(e), operation="create_account", original_error=e
            )

        profile = Profile(
            email=payload.email,
            full_name=payload.full_name,
            role=UserRole.TUTOR,
            status=ProfileStatus.PENDING_VERIFICATION,
            invited_by=payload.invited_by,
            created_by=payload.invited_by,
        )

        try:
            async with self.session_manager.get_transaction() as session:
                existing = await session.execute(
                    select(Profile.id).where(Profile.email == payload.email)
                )
                if existing.first() is not None:
                    raise CollaboratorError(
                        ACCOUNT_EXISTS_REASON, operation="create_account"
                    )
                session.add(profile)
                await session.flush()
        except IntegrityError as e:
            raise CollaboratorError(
                account_integrity_reason(e),
                operation="create_account",
                original_error=e,
            )
        except SQLAlchemyError as e:
            raise CollaboratorError(
                database_reason(e), operation="create_account", original_error=e
            )

        logger.info(f"Created tutor profile {profile.id}")
        return to_account(profile)

    async def update_account_phone(self, account_id: uuid.UUID, phone: str) -> None:
        result = validate_phone(phone)
        if not result.is_valid:
            raise CollaboratorError(
                result.errors[0].message, operation="update_account_phone"
            )

        try:
            async with self.session_manager.get_transaction() as session:
                profile = await session.get(Profile, account_id)
                if profile is None:
                    raise CollaboratorError(
                        "account not found", operation="update_account_phone"
                    )
                profile.phone = result.value
                profile.updated_by = account_id
        except SQLAlchemyError as e:
            raise CollaboratorError(
                database_reason(e), operation="update_account_phone", original_error=e
            )


class SqlRecordStore:
    """
    Pet records stored as ``Pet`` rows.

    A pet created with an idempotency key is returned again, without a new
    insert, when the same key is submitted later. A soft-deleted pet gives
    up its key and a new record is created in its place.
    """

    def __init__(self, session_manager: SessionManager):
        self.session_manager = session_manager

    async def create_pet(
        self,
        tutor_account_id: uuid.UUID,
        name: str,
        species: PetSpecies,
        breed: Optional[str],
        microchip_id: Optional[str],
        provenance_tag: str,
        *,
        idempotency_key: Optional[str] = None,
        created_by: Optional[uuid.UUID] = None,
        birth_date: Optional[str] = None,
        weight: Optional[str] = None,
        rga_id: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> PetRecord:
        try:
            payload = PetCreate(
                tutor_id=tutor_account_id,
                name=name,
                species=species,
                breed=breed,
                microchip_id=microchip_id,
                registration_source=provenance_tag,
                import_key=idempotency_key,
                created_by=created_by,
                birth_date=birth_date,
                weight_kg=weight,
                rga_id=rga_id,
                notes=notes,
            )
        except ValidationError as e:
            raise CollaboratorError(
                validation_reason(e), operation="create_pet", original_error=e
            )

        try:
            async with self.session_manager.get_transaction() as session:
                if payload.import_key:
                    result = await session.execute(
                        select(Pet).where(Pet.import_key == payload.import_key)
                    )
                    existing = result.scalar_one_or_none()
                    if existing is not None and not existing.is_deleted:
                        logger.info(
                            f"Pet {existing.id} already imported, skipping insert"
                        )
                        return to_record(existing)
                    if existing is not None:
                        logger.info(
                            f"Pet {existing.id} was deleted, importing it again"
                        )
                        existing.import_key = None
                        await session.flush()

                if await session.get(Profile, payload.tutor_id) is None:
                    raise CollaboratorError(
                        "tutor account not found", operation="create_pet"
                    )

                pet = Pet(
                    tutor_id=payload.tutor_id,
                    name=payload.name,
                    species=PetSpecies(payload.species),
                    breed=payload.breed,
                    microchip_id=payload.microchip_id,
                    birth_date=payload.birth_date,
                    weight_kg=payload.weight_kg,
                    rga_id=payload.rga_id,
                    notes=payload.notes,
                    registration_source=payload.registration_source,
                    import_key=payload.import_key,
                    created_by=payload.created_by,
                )
                session.add(pet)
                await session.flush()
        except SQLAlchemyError as e:
            raise CollaboratorError(
                database_reason(e), operation="create_pet", original_error=e
            )

        return to_record(pet)
