# Seed the modification catalogue

from django.db import migrations

DEFAULT_MODIFICATIONS = [
    ('STAGE_1', 'Stage 1 Tune', 'Basic ECU remap for improved power and torque', 'performance'),
    ('STAGE_2', 'Stage 2 Tune', 'Advanced tune with hardware modifications support', 'performance'),
    ('STAGE_3', 'Stage 3 Tune', 'High-performance tune for extensively modified vehicles', 'performance'),
    ('ECONOMY', 'Economy Tune', 'Optimized for fuel efficiency and reduced emissions', 'performance'),
    ('DPF_DELETE', 'DPF Delete', 'Remove diesel particulate filter restrictions', 'emissions'),
    ('EGR_DELETE', 'EGR Delete', 'Disable exhaust gas recirculation system', 'emissions'),
    ('ADBLUE_DELETE', 'AdBlue Delete', 'Remove selective catalytic reduction system', 'emissions'),
    ('SWIRL_DELETE', 'Swirl Flap Delete', 'Disable intake manifold swirl flaps', 'emissions'),
    ('LAMBDA_DELETE', 'Lambda Delete', 'Remove oxygen sensor monitoring', 'emissions'),
    ('SPEED_LIMITER', 'Speed Limiter Removal', 'Remove factory speed limitations', 'performance'),
    ('REV_LIMITER', 'Rev Limiter Adjustment', 'Modify engine rev limiter settings', 'performance'),
    ('LAUNCH_CONTROL', 'Launch Control', 'Add launch control functionality', 'performance'),
    ('POP_BANG', 'Pop & Bang', 'Add exhaust pops and bangs on deceleration', 'performance'),
    ('COLD_START', 'Cold Start Delete', 'Remove cold start emissions restrictions', 'emissions'),
    ('IMMOBILIZER', 'Immobilizer Delete', 'Remove engine immobilizer system', 'diagnostics'),
    ('GEARBOX_TUNE', 'Gearbox Tune', 'Optimize automatic transmission parameters', 'performance'),
    ('DSG_TUNE', 'DSG Tune', 'Enhance dual-clutch transmission performance', 'performance'),
    ('TORQUE_LIMIT', 'Torque Limiter Removal', 'Remove factory torque limitations', 'performance'),
]


def create_modifications(apps, schema_editor):
    TuningModification = apps.get_model('tuning', 'TuningModification')
    for position, (code, name, description, category) in enumerate(DEFAULT_MODIFICATIONS, start=1):
        TuningModification.objects.update_or_create(
            code=code,
            defaults={'name': name, 'description': description, 'category': category, 'sort_order': position},
        )


def remove_modifications(apps, schema_editor):
    TuningModification = apps.get_model('tuning', 'TuningModification')
    TuningModification.objects.filter(code__in=[row[0] for row in DEFAULT_MODIFICATIONS]).delete()


class Migration(migrations.Migration):

    dependencies = [
        ('tuning', '0001_initial'),
    ]

    operations = [
        migrations.RunPython(create_modifications, remove_modifications),
    ]
