from django.db.models.signals import pre_save
from django.dispatch import receiver

from .models import CreditCase, LegalCase
from .stores import database_allocator


@receiver(pre_save, sender=CreditCase)
@receiver(pre_save, sender=LegalCase)
def assign_case_number(sender, instance, raw=False, **kwargs):
    if raw or instance.case_number:
        return
    instance.case_number = database_allocator().allocate(
        law_firm_id=instance.law_firm_id,
        department_id=instance.department_id,
        escalated=instance.is_escalated,
        exclude=instance,
    )
