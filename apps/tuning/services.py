"""
Tuning file services for CompuCar Platform
Every mutation locks the file row, writes one audit entry, bumps the version
and publishes its domain events only after the transaction commits.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any

from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.files.uploadedfile import UploadedFile
from django.db import DatabaseError, transaction
from django.db.models import Q, QuerySet, Sum
from django.utils import timezone

from apps.common.types import Err, Ok, Result, TransitionError, ValidationError
from apps.common.validators import (
    MAX_ADMIN_NOTE_LENGTH,
    MAX_CUSTOMER_COMMENT_LENGTH,
    SecureInputValidator,
    log_security_event,
)
from apps.notifications.events import (
    AdminCommentAdded,
    DomainEvent,
    EstimatedTimeSet,
    FilePaymentConfirmed,
    FilePriceSet,
    FileStatusChanged,
    FileUploaded,
    event_bus,
)

from .models import TuningAuditEntry, TuningFile, TuningModification
from .workflow import (
    PENDING,
    READY,
    RECEIVED,
    TuningStatusMachine,
    format_time_text,
    validate_estimated_minutes,
)

if TYPE_CHECKING:
    from apps.users.models import User

logger = logging.getLogger(__name__)

# Err codes the views translate into HTTP statuses
FILE_NOT_FOUND = "File not found or access denied"
STALE_VERSION = "stale_version"
PERSISTENCE_ERROR = "The update could not be saved"
AMBIGUOUS_FILE = "Ambiguous file reference"

PRICE_QUANTUM = Decimal("0.01")

Mutation = Callable[[TuningFile], list[DomainEvent]]


class TuningFileService:
    """📁 Tuning file lifecycle: upload, status workflow, pricing, delivery"""

    # ===============================================================================
    # CUSTOMER OPERATIONS
    # ===============================================================================

    @staticmethod
    def create_upload(
        owner: User,
        upload: UploadedFile,
        modification_codes: Iterable[str] = (),
        comment: str = "",
    ) -> Result[TuningFile, str]:
        """Store a new customer upload in RECEIVED state"""
        try:
            filename = SecureInputValidator.validate_filename(upload.name)
            size = SecureInputValidator.validate_upload_size(upload.size or 0)
            comment = SecureInputValidator.validate_free_text(comment, 'comment', MAX_CUSTOMER_COMMENT_LENGTH)
        except ValidationError as e:
            return Err(e.message)

        codes = [code for code in modification_codes if code]
        modifications = list(TuningModification.objects.filter(code__in=codes, is_active=True))
        unknown = set(codes) - {m.code for m in modifications}
        if unknown:
            return Err(f"Unknown modifications: {', '.join(sorted(unknown))}")

        try:
            with transaction.atomic():
                tuning_file = TuningFile(
                    owner=owner,
                    original_filename=filename,
                    file_size=size,
                    file_type=getattr(upload, 'content_type', '') or '',
                    customer_comment=comment,
                )
                tuning_file.original_file.save(filename, upload, save=False)
                tuning_file.save()
                tuning_file.modifications.set(modifications)

                event_bus.publish_on_commit(
                    FileUploaded(
                        file_id=str(tuning_file.id),
                        owner_id=owner.pk,
                        file_name=filename,
                        file_size=size,
                        owner_email=owner.email,
                        modifications=tuple(m.name for m in modifications),
                    )
                )
        except DatabaseError as e:
            logger.exception(f"🔥 [Tuning] Upload of {filename} failed: {e}")
            return Err(PERSISTENCE_ERROR)

        logger.info(f"✅ [Tuning] File {tuning_file.short_id} uploaded by {owner.email} ({size} bytes)")
        return Ok(tuning_file)

    @staticmethod
    def add_customer_comment(file_id: Any, comment: str, owner: User) -> Result[TuningFile, str]:
        """Replace the customer's comment; only the owner may do this"""

        def apply(tuning_file: TuningFile) -> list[DomainEvent]:
            if tuning_file.owner_id != owner.pk:
                log_security_event('tuning_file_access_denied', {'file_id': str(file_id), 'user_id': owner.pk})
                raise TuningFile.DoesNotExist
            text = SecureInputValidator.validate_free_text(comment, 'comment', MAX_CUSTOMER_COMMENT_LENGTH)
            old = tuning_file.customer_comment
            tuning_file.customer_comment = text
            TuningFileService._save(tuning_file, ['customer_comment'])
            TuningFileService._audit(
                tuning_file, TuningAuditEntry.ACTION_CUSTOMER_COMMENT, old, text, owner, "web"
            )
            return []

        return TuningFileService._mutate(file_id, None, apply)

    # ===============================================================================
    # ADMIN OPERATIONS
    # ===============================================================================

    @staticmethod
    def update_status(  # noqa: PLR0913
        file_id: Any,
        new_status: str,
        actor: User | None = None,
        *,
        override: bool = False,
        estimated_minutes: int | None = None,
        expected_version: int | None = None,
        source: str = "web",
    ) -> Result[TuningFile, str]:
        """
        Move a file through the workflow.

        Estimated minutes are only accepted together with PENDING and start the
        customer's countdown from now. Returning a file to RECEIVED clears it.
        """

        def apply(tuning_file: TuningFile) -> list[DomainEvent]:
            transition = TuningStatusMachine.transition(tuning_file.status, new_status, override=override)
            minutes = None
            if estimated_minutes is not None:
                if new_status != PENDING:
                    raise TransitionError("Estimated time can only be set together with PENDING")
                minutes = validate_estimated_minutes(estimated_minutes)

            fields = ['status']
            tuning_file.status = new_status
            if minutes is not None:
                tuning_file.estimated_processing_time_minutes = minutes
                tuning_file.estimated_processing_time_set_at = timezone.now()
                fields += ['estimated_processing_time_minutes', 'estimated_processing_time_set_at']
            elif new_status == RECEIVED:
                tuning_file.estimated_processing_time_minutes = None
                tuning_file.estimated_processing_time_set_at = None
                fields += ['estimated_processing_time_minutes', 'estimated_processing_time_set_at']

            TuningFileService._save(tuning_file, fields)
            TuningFileService._audit(
                tuning_file,
                TuningAuditEntry.ACTION_STATUS_CHANGE,
                transition.old_status,
                transition.new_status,
                actor,
                source,
            )

            events: list[DomainEvent] = [
                FileStatusChanged(
                    file_id=str(tuning_file.id),
                    owner_id=tuning_file.owner_id,
                    file_name=tuning_file.original_filename,
                    old_status=transition.old_status,
                    new_status=transition.new_status,
                    actor_id=getattr(actor, 'pk', None),
                    source=source,
                )
            ]
            if minutes is not None:
                events.append(TuningFileService._estimated_time_event(tuning_file, minutes, actor))
            return events

        return TuningFileService._mutate(file_id, expected_version, apply)

    @staticmethod
    def set_estimated_time(
        file_id: Any,
        minutes: int,
        actor: User | None = None,
        *,
        expected_version: int | None = None,
        source: str = "telegram",
    ) -> Result[TuningFile, str]:
        """Set the processing estimate and move the file to PENDING"""

        def apply(tuning_file: TuningFile) -> list[DomainEvent]:
            value = validate_estimated_minutes(minutes)
            old_status = tuning_file.status
            old_minutes = tuning_file.estimated_processing_time_minutes
            if old_status != PENDING:
                TuningStatusMachine.transition(old_status, PENDING)

            tuning_file.status = PENDING
            tuning_file.estimated_processing_time_minutes = value
            tuning_file.estimated_processing_time_set_at = timezone.now()
            TuningFileService._save(
                tuning_file,
                ['status', 'estimated_processing_time_minutes', 'estimated_processing_time_set_at'],
            )
            TuningFileService._audit(
                tuning_file,
                TuningAuditEntry.ACTION_ESTIMATED_TIME_SET,
                str(old_minutes) if old_minutes else None,
                str(value),
                actor,
                source,
            )

            events: list[DomainEvent] = []
            if old_status != PENDING:
                events.append(
                    FileStatusChanged(
                        file_id=str(tuning_file.id),
                        owner_id=tuning_file.owner_id,
                        file_name=tuning_file.original_filename,
                        old_status=old_status,
                        new_status=PENDING,
                        actor_id=getattr(actor, 'pk', None),
                        source=source,
                    )
                )
            events.append(TuningFileService._estimated_time_event(tuning_file, value, actor))
            return events

        return TuningFileService._mutate(file_id, expected_version, apply)

    @staticmethod
    def set_price(
        file_id: Any,
        price: Any,
        actor: User | None = None,
        *,
        expected_version: int | None = None,
    ) -> Result[TuningFile, str]:
        """Price in DZD; status is untouched"""

        def apply(tuning_file: TuningFile) -> list[DomainEvent]:
            value = TuningFileService._parse_price(price)
            old = tuning_file.price
            tuning_file.price = value
            TuningFileService._save(tuning_file, ['price'])
            TuningFileService._audit(
                tuning_file,
                TuningAuditEntry.ACTION_PRICE_SET,
                str(old) if old is not None else None,
                str(value),
                actor,
                "web",
            )
            return [
                FilePriceSet(
                    file_id=str(tuning_file.id),
                    owner_id=tuning_file.owner_id,
                    file_name=tuning_file.original_filename,
                    price=value,
                    actor_id=getattr(actor, 'pk', None),
                )
            ]

        return TuningFileService._mutate(file_id, expected_version, apply)

    @staticmethod
    def set_payment_status(
        file_id: Any,
        payment_status: str,
        actor: User | None = None,
        *,
        expected_version: int | None = None,
    ) -> Result[TuningFile, str]:
        def apply(tuning_file: TuningFile) -> list[DomainEvent]:
            valid = {choice for choice, _label in TuningFile.PAYMENT_STATUS_CHOICES}
            if payment_status not in valid:
                raise ValidationError('paymentStatus', f"Payment status must be one of {', '.join(sorted(valid))}")

            old = tuning_file.payment_status
            tuning_file.payment_status = payment_status
            TuningFileService._save(tuning_file, ['payment_status'])
            TuningFileService._audit(
                tuning_file, TuningAuditEntry.ACTION_PAYMENT_STATUS_CHANGE, old, payment_status, actor, "web"
            )
            if payment_status != TuningFile.PAYMENT_PAID or old == TuningFile.PAYMENT_PAID:
                return []
            return [
                FilePaymentConfirmed(
                    file_id=str(tuning_file.id),
                    owner_id=tuning_file.owner_id,
                    file_name=tuning_file.original_filename,
                    payment_status=payment_status,
                    actor_id=getattr(actor, 'pk', None),
                )
            ]

        return TuningFileService._mutate(file_id, expected_version, apply)

    @staticmethod
    def add_admin_note(
        file_id: Any,
        note: str,
        actor: User | None = None,
        *,
        expected_version: int | None = None,
    ) -> Result[TuningFile, str]:
        """Admin note shown to the customer on the file page"""

        def apply(tuning_file: TuningFile) -> list[DomainEvent]:
            text = SecureInputValidator.validate_free_text(note, 'note', MAX_ADMIN_NOTE_LENGTH)
            if not text:
                raise ValidationError('note', "Note cannot be empty")

            old = tuning_file.admin_notes
            tuning_file.admin_notes = text
            TuningFileService._save(tuning_file, ['admin_notes'])
            TuningFileService._audit(tuning_file, TuningAuditEntry.ACTION_NOTE_ADDED, old or None, text, actor, "web")
            return [
                AdminCommentAdded(
                    file_id=str(tuning_file.id),
                    owner_id=tuning_file.owner_id,
                    file_name=tuning_file.original_filename,
                    note=text,
                    actor_id=getattr(actor, 'pk', None),
                )
            ]

        return TuningFileService._mutate(file_id, expected_version, apply)

    @staticmethod
    def upload_modified_file(
        file_id: Any,
        upload: UploadedFile,
        actor: User | None = None,
        *,
        expected_version: int | None = None,
    ) -> Result[TuningFile, str]:
        """
        Attach the processed file and mark the job READY.
        The original upload is kept; the estimate is cleared.
        """

        def apply(tuning_file: TuningFile) -> list[DomainEvent]:
            filename = SecureInputValidator.validate_filename(upload.name)
            size = SecureInputValidator.validate_upload_size(upload.size or 0)

            old_status = tuning_file.status
            old_filename = tuning_file.modified_filename
            if old_status != READY:
                logger.info(f"📤 [Tuning] Modified file moves {tuning_file.short_id} {old_status} → {READY}")

            storage = tuning_file.modified_file.storage
            replaced_blob = tuning_file.modified_file.name
            tuning_file.modified_file.save(filename, upload, save=False)
            new_blob = tuning_file.modified_file.name

            tuning_file.modified_filename = filename
            tuning_file.modified_file_size = size
            tuning_file.modified_file_type = getattr(upload, 'content_type', '') or ''
            tuning_file.modified_upload_date = timezone.now()
            tuning_file.status = READY
            tuning_file.estimated_processing_time_minutes = None
            tuning_file.estimated_processing_time_set_at = None
            try:
                TuningFileService._save(
                    tuning_file,
                    [
                        'modified_file',
                        'modified_filename',
                        'modified_file_size',
                        'modified_file_type',
                        'modified_upload_date',
                        'status',
                        'estimated_processing_time_minutes',
                        'estimated_processing_time_set_at',
                    ],
                )
                TuningFileService._audit(
                    tuning_file,
                    TuningAuditEntry.ACTION_MODIFIED_FILE_UPLOADED,
                    old_filename or None,
                    filename,
                    actor,
                    "web",
                )
            except DatabaseError:
                # Row update rolls back, so the blob it pointed to must go too
                storage.delete(new_blob)
                raise

            if replaced_blob and replaced_blob != new_blob:
                transaction.on_commit(lambda: storage.delete(replaced_blob))
                logger.info(f"🗑️ [Tuning] Previous modified file of {tuning_file.short_id} queued for removal on commit")
            return [
                FileStatusChanged(
                    file_id=str(tuning_file.id),
                    owner_id=tuning_file.owner_id,
                    file_name=tuning_file.original_filename,
                    old_status=old_status,
                    new_status=READY,
                    actor_id=getattr(actor, 'pk', None),
                )
            ]

        return TuningFileService._mutate(file_id, expected_version, apply)

    # ===============================================================================
    # QUERIES
    # ===============================================================================

    @staticmethod
    def get_customer_file(owner: User, file_id: Any) -> TuningFile | None:
        """Owner-scoped lookup; another customer's file looks exactly like a missing one"""
        try:
            return TuningFile.objects.prefetch_related('modifications').get(pk=file_id, owner=owner)
        except (TuningFile.DoesNotExist, ValueError, DjangoValidationError):
            return None

    @staticmethod
    def list_customer_files(owner: User, status: str | None = None, search: str | None = None) -> QuerySet[TuningFile]:
        queryset = TuningFile.objects.filter(owner=owner).prefetch_related('modifications')
        return TuningFileService.filter_files(queryset, status, search)

    @staticmethod
    def filter_files(queryset: QuerySet[TuningFile], status: str | None, search: str | None) -> QuerySet[TuningFile]:
        if status:
            queryset = queryset.filter(status=status.upper())
        if search:
            queryset = queryset.filter(
                Q(original_filename__icontains=search)
                | Q(modified_filename__icontains=search)
                | Q(customer_comment__icontains=search)
            )
        return queryset

    @staticmethod
    def payment_summary(queryset: QuerySet[TuningFile]) -> dict[str, Decimal]:
        """Priced totals split by payment status"""
        totals = queryset.aggregate(
            total_paid=Sum('price', filter=Q(payment_status=TuningFile.PAYMENT_PAID)),
            total_unpaid=Sum('price', filter=Q(payment_status=TuningFile.PAYMENT_NOT_PAID)),
        )
        return {
            'totalPaid': totals['total_paid'] or Decimal("0"),
            'totalUnpaid': totals['total_unpaid'] or Decimal("0"),
        }

    @staticmethod
    def resolve_short_id(short: str) -> Result[TuningFile, str]:
        """Find a file from the 8-character prefix carried in bot buttons"""
        if not short or len(short) < 8:  # noqa: PLR2004
            return Err(FILE_NOT_FOUND)

        matches = list(TuningFile.objects.filter(id__startswith=short.lower())[:2])
        if not matches:
            return Err(FILE_NOT_FOUND)
        if len(matches) > 1:
            logger.warning(f"⚠️ [Tuning] Short id {short} matches more than one file")
            return Err(AMBIGUOUS_FILE)
        return Ok(matches[0])

    # ===============================================================================
    # INTERNALS
    # ===============================================================================

    @staticmethod
    def _mutate(file_id: Any, expected_version: int | None, apply: Mutation) -> Result[TuningFile, str]:
        """
        Run one mutation under a row lock.
        Anything raised inside rolls back the audit entry and drops the events.
        """
        try:
            with transaction.atomic():
                tuning_file = TuningFile.objects.select_for_update().get(pk=file_id)
                if expected_version is not None and tuning_file.version != expected_version:
                    logger.info(
                        f"⚠️ [Tuning] Stale edit on {tuning_file.short_id}: "
                        f"expected v{expected_version}, current v{tuning_file.version}"
                    )
                    return Err(STALE_VERSION)

                for event in apply(tuning_file):
                    event_bus.publish_on_commit(event)
        except (TuningFile.DoesNotExist, ValueError, DjangoValidationError):
            return Err(FILE_NOT_FOUND)
        except ValidationError as e:
            return Err(e.message)
        except TransitionError as e:
            return Err(str(e))
        except DatabaseError as e:
            logger.exception(f"🔥 [Tuning] Update of file {file_id} failed: {e}")
            return Err(PERSISTENCE_ERROR)

        return Ok(tuning_file)

    @staticmethod
    def _save(tuning_file: TuningFile, fields: list[str]) -> None:
        tuning_file.version += 1
        tuning_file.save(update_fields=[*fields, 'version', 'updated_at'])

    @staticmethod
    def _audit(  # noqa: PLR0913
        tuning_file: TuningFile,
        action: str,
        old_value: str | None,
        new_value: str | None,
        actor: User | None,
        source: str,
    ) -> TuningAuditEntry:
        entry = TuningAuditEntry.objects.create(
            file=tuning_file,
            action=action,
            old_value=old_value,
            new_value=new_value,
            actor=actor if getattr(actor, 'pk', None) else None,
            source=source,
        )
        logger.info(f"📋 [Tuning] {action} on {tuning_file.short_id}: {old_value} → {new_value} ({source})")
        return entry

    @staticmethod
    def _estimated_time_event(tuning_file: TuningFile, minutes: int, actor: User | None) -> EstimatedTimeSet:
        return EstimatedTimeSet(
            file_id=str(tuning_file.id),
            owner_id=tuning_file.owner_id,
            file_name=tuning_file.original_filename,
            minutes=minutes,
            time_text=format_time_text(minutes),
            actor_id=getattr(actor, 'pk', None),
        )

    @staticmethod
    def _parse_price(price: Any) -> Decimal:
        if price is None or isinstance(price, bool):
            raise ValidationError('price', "Price is required")
        try:
            value = Decimal(str(price))
        except (InvalidOperation, ValueError) as e:
            raise ValidationError('price', "Price must be a number") from e
        if not value.is_finite() or value < 0:
            raise ValidationError('price', "Price must be zero or more")
        if value >= Decimal("100000000"):
            raise ValidationError('price', "Price is too large")
        return value.quantize(PRICE_QUANTUM)
