"""
Core models and mixins used across all apps.
"""
from django.db import models
from django.conf import settings


class TimeStampedModel(models.Model):
    """
    Abstract base model with created_at and updated_at fields.
    """
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class UserTrackingModel(models.Model):
    """
    Abstract base model with created_by and updated_by fields.
    """
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='%(app_label)s_%(class)s_created'
    )
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='%(app_label)s_%(class)s_updated'
    )

    class Meta:
        abstract = True


class ActiveModel(models.Model):
    """
    Abstract base model with is_active field.
    """
    is_active = models.BooleanField(default=True)

    class Meta:
        abstract = True


class VersionedModel(models.Model):
    """
    Abstract base model with an optimistic-concurrency counter.

    The counter is only advanced by the service layer, inside the same
    transaction that holds the row lock.
    """
    version = models.PositiveIntegerField(default=1)

    class Meta:
        abstract = True


class BaseModel(TimeStampedModel, UserTrackingModel, ActiveModel):
    """
    Base model combining all common fields.

    Fields:
    - created_at
    - updated_at
    - created_by
    - updated_by
    - is_active
    """

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        # Requests and Celery tasks both publish the acting user here
        from apps.core.middleware import get_current_user
        user = get_current_user()

        if user is not None and user.is_authenticated:
            if not self.pk and not self.created_by_id:
                self.created_by = user
            self.updated_by = user
            update_fields = kwargs.get('update_fields')
            if update_fields is not None:
                kwargs['update_fields'] = set(update_fields) | {'updated_by'}

        super().save(*args, **kwargs)
