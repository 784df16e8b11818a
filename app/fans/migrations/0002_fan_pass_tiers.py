"""
Split the fan paid plan into fan pass and superfan pass tiers.

Fans on the old single paid plan move to the fan pass tier and get the
matching feature map.
"""

from django.db import migrations, models

from payments.plans import features_for


def move_premium_fans_to_fan_pass(apps, schema_editor):
    FanAccount = apps.get_model("fans", "FanAccount")
    for fan in FanAccount.objects.all().iterator():
        plan = "fan_pass" if fan.plan == "premium" else fan.plan
        fan.plan = plan
        fan.features = features_for("fan", plan)
        fan.save(update_fields=["plan", "features"])


class Migration(migrations.Migration):
    dependencies = [
        ("fans", "0001_initial"),
    ]

    operations = [
        migrations.AlterField(
            model_name="fanaccount",
            name="plan",
            field=models.CharField(
                choices=[
                    ("free", "Free"),
                    ("premium", "Premium"),
                    ("fan_pass", "Fan Pass"),
                    ("superfan_pass", "Superfan Pass"),
                ],
                db_index=True,
                default="free",
                help_text="Current plan",
                max_length=20,
            ),
        ),
        migrations.RunPython(move_premium_fans_to_fan_pass, migrations.RunPython.noop),
    ]
