"""
Add celery-beat schedule for sweeping stale pending payments.

Creates the periodic task for expire_stale_payments, which runs hourly to
reconcile pending PaymentRecords whose client never confirmed and whose
webhook never arrived.
"""

from django.db import migrations

TASK_NAME = "Expire Stale Pending Payments"


def create_periodic_task(apps, schema_editor):
    IntervalSchedule = apps.get_model("django_celery_beat", "IntervalSchedule")
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    schedule, _ = IntervalSchedule.objects.get_or_create(
        every=1,
        period="hours",
    )

    PeriodicTask.objects.get_or_create(
        name=TASK_NAME,
        defaults={
            "task": "payments.tasks.expire_stale_payments",
            "interval": schedule,
            "enabled": True,
            "description": (
                "Checks pending payment records older than "
                "PAYMENT_PENDING_EXPIRY_HOURS against Stripe and completes "
                "or fails them."
            ),
        },
    )


def remove_periodic_task(apps, schema_editor):
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")
    PeriodicTask.objects.filter(name=TASK_NAME).delete()


class Migration(migrations.Migration):
    dependencies = [
        ("payments", "0001_initial"),
        ("django_celery_beat", "0019_alter_periodictasks_options"),
    ]

    operations = [
        migrations.RunPython(create_periodic_task, remove_periodic_task),
    ]
