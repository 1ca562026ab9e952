import logging

from django.db import IntegrityError, transaction
from django.utils import timezone

from apps.core.exceptions import Forbidden, InvalidInput, NotFound
from apps.core.services.activity import log_activity

logger = logging.getLogger(__name__)


class TenancyService:
    """Tenancy lifecycle: start a lease on a property, end it (softly)."""

    @staticmethod
    def create_tenancy(landlord, property_id, tenant, fields):
        """
        Start an active tenancy for ``tenant`` on a property the landlord owns.

        At most one active tenancy may exist per property; the check here gives
        a readable error and the partial unique constraint backs it up.
        """
        from apps.properties.models import Property

        from .forms import TenancyForm
        from .models import Tenancy

        if landlord is None or not landlord.is_landlord:
            raise Forbidden("Only landlords can create tenancies.")
        if tenant is None or not tenant.is_tenant:
            raise InvalidInput("Tenancy must be created for a tenant account.", errors={"tenant": ["Not a tenant."]})

        form = TenancyForm(data=fields)
        if not form.is_valid():
            raise InvalidInput.from_form(form)
        data = form.cleaned_data

        try:
            prop = Property.objects.get(pk=property_id)
        except Property.DoesNotExist:
            raise NotFound("Property not found.")
        if prop.landlord_id != landlord.pk:
            raise Forbidden("Property not found or unauthorized.")

        with transaction.atomic():
            prop = Property.objects.select_for_update().get(pk=prop.pk)
            if Tenancy.objects.filter(property=prop, status="active").exists():
                raise InvalidInput("Property already has an active tenancy.")
            try:
                with transaction.atomic():
                    tenancy = Tenancy.objects.create(
                        landlord=landlord,
                        tenant=tenant,
                        property=prop,
                        status="active",
                        monthly_rent=data["monthly_rent"],
                        security_deposit=data["security_deposit"],
                        lease_start=data["lease_start"],
                        lease_end=data["lease_end"],
                        currency=data["currency"],
                    )
            except IntegrityError:
                raise InvalidInput("Property already has an active tenancy.")

            prop.status = "occupied"
            prop.save(update_fields=["status", "updated_at"])

        log_activity(prop, "TENANCY", f"Tenancy started - {tenant}", related_id=tenancy.pk)
        logger.info("Tenancy %s started on property %s", tenancy.pk, prop.pk)
        return tenancy

    @staticmethod
    def end_tenancy(landlord, tenancy_id, now=None):
        """End a tenancy. Bills and ledger entries are retained for audit."""
        from .models import Tenancy

        now = now or timezone.now()
        with transaction.atomic():
            try:
                tenancy = Tenancy.objects.select_for_update().select_related(
                    "property", "tenant"
                ).get(pk=tenancy_id)
            except Tenancy.DoesNotExist:
                raise NotFound("Tenancy not found.")
            if landlord is None or tenancy.landlord_id != landlord.pk:
                raise Forbidden("Unauthorized.")
            if not tenancy.is_active:
                raise InvalidInput("Tenancy has already ended.")

            tenancy.status = "ended"
            tenancy.ended_at = now
            tenancy.save(update_fields=["status", "ended_at", "updated_at"])

            prop = tenancy.property
            prop.status = "vacant"
            prop.save(update_fields=["status", "updated_at"])

        log_activity(prop, "TENANCY", f"Tenancy ended - {tenancy.tenant}", related_id=tenancy.pk)
        logger.info("Tenancy %s ended", tenancy.pk)
        return tenancy
