from django.db.models.signals import post_save, pre_delete
from django.dispatch import receiver

from .models import EntityMembership, User

""" Give a user a default company with their first membership. """


@receiver(post_save, sender=EntityMembership)
def set_default_company_on_first_membership(sender, instance, created,
                                            **kwargs):
    if not created or not instance.is_active:
        return
    user = instance.user
    if user.default_company_id is None:
        User.objects.filter(pk=user.pk).update(
            default_company=instance.company)
        user.default_company = instance.company


""" A user's default company must stay one of their memberships. """


@receiver(pre_delete, sender=EntityMembership)
def clear_default_company_on_membership_delete(sender, instance, **kwargs):
    User.objects.filter(
        pk=instance.user_id, default_company_id=instance.company_id
    ).update(default_company=None)
