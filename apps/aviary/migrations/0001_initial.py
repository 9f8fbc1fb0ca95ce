# Generated manually for the aviary app

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone

CATEGORY_CHOICES = [
    ('Bird', 'Bird'),
    ('Cage', 'Cage'),
    ('Pair', 'Pair'),
    ('BreedingRecord', 'Breeding record'),
    ('NoteReminder', 'Note / reminder'),
    ('Transaction', 'Transaction'),
    ('Permit', 'Permit'),
    ('CustomSpecies', 'Custom species'),
    ('CustomMutation', 'Custom mutation'),
]


def owned_fields():
    return [
        ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
        ('item_id', models.CharField(editable=False, max_length=64)),
        ('category', models.CharField(choices=CATEGORY_CHOICES, max_length=20)),
        ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
        ('owner', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='+', to=settings.AUTH_USER_MODEL)),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='BirdRow',
            fields=owned_fields() + [
                ('species', models.CharField(max_length=200)),
                ('subspecies', models.CharField(blank=True, max_length=200, null=True)),
                ('sex', models.CharField(choices=[('male', 'Male'), ('female', 'Female'), ('unsexed', 'Unsexed')], default='unsexed', max_length=10)),
                ('ring_number', models.CharField(blank=True, max_length=100, null=True)),
                ('unbanded', models.BooleanField(default=False)),
                ('birth_date', models.DateField(blank=True, null=True)),
                ('image_url', models.TextField(blank=True, null=True)),
                ('visual_mutations', models.JSONField(blank=True, default=list)),
                ('split_mutations', models.JSONField(blank=True, default=list)),
                ('father_id', models.CharField(blank=True, db_index=True, max_length=64, null=True)),
                ('mother_id', models.CharField(blank=True, db_index=True, max_length=64, null=True)),
                ('mate_id', models.CharField(blank=True, max_length=64, null=True)),
                ('offspring_ids', models.JSONField(blank=True, default=list)),
                ('paid_price', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('estimated_value', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('status', models.CharField(choices=[('Available', 'Available'), ('Sold', 'Sold'), ('Deceased', 'Deceased'), ('Hand-rearing', 'Hand-rearing')], default='Available', max_length=20)),
                ('permit_id', models.CharField(blank=True, db_index=True, max_length=64, null=True)),
                ('sale_details', models.JSONField(blank=True, null=True)),
                ('medical_records', models.JSONField(blank=True, default=list)),
            ],
            options={
                'db_table': 'birds',
                'ordering': ['-created_at'],
                'abstract': False,
                'constraints': [
                    models.UniqueConstraint(fields=('owner', 'item_id'), name='birdrow_owner_item_uniq'),
                ],
                'indexes': [
                    models.Index(fields=['owner', 'species'], name='birds_owner_species_idx'),
                    models.Index(fields=['owner', 'status'], name='birds_owner_status_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='CageRow',
            fields=owned_fields() + [
                ('name', models.CharField(max_length=200)),
                ('bird_ids', models.JSONField(blank=True, default=list)),
                ('cost', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
            ],
            options={
                'db_table': 'cages',
                'ordering': ['-created_at'],
                'abstract': False,
                'constraints': [
                    models.UniqueConstraint(fields=('owner', 'item_id'), name='cagerow_owner_item_uniq'),
                ],
            },
        ),
        migrations.CreateModel(
            name='PairRow',
            fields=owned_fields() + [
                ('male_id', models.CharField(db_index=True, max_length=64)),
                ('female_id', models.CharField(db_index=True, max_length=64)),
                ('image_url', models.TextField(blank=True, null=True)),
            ],
            options={
                'db_table': 'pairs',
                'ordering': ['-created_at'],
                'abstract': False,
                'constraints': [
                    models.UniqueConstraint(fields=('owner', 'item_id'), name='pairrow_owner_item_uniq'),
                ],
            },
        ),
        migrations.CreateModel(
            name='BreedingRecordRow',
            fields=owned_fields() + [
                ('pair_id', models.CharField(db_index=True, max_length=64)),
                ('start_date', models.DateField(blank=True, null=True)),
                ('notes', models.TextField(blank=True, null=True)),
                ('eggs', models.JSONField(blank=True, default=list)),
            ],
            options={
                'db_table': 'breeding_records',
                'ordering': ['-created_at'],
                'abstract': False,
                'constraints': [
                    models.UniqueConstraint(fields=('owner', 'item_id'), name='breedingrecordrow_owner_item_uniq'),
                ],
            },
        ),
        migrations.CreateModel(
            name='NoteReminderRow',
            fields=owned_fields() + [
                ('title', models.CharField(max_length=255)),
                ('content', models.TextField(blank=True, null=True)),
                ('is_reminder', models.BooleanField(default=False)),
                ('reminder_date', models.DateField(blank=True, null=True)),
                ('is_recurring', models.BooleanField(default=False)),
                ('recurrence_pattern', models.CharField(choices=[('daily', 'Daily'), ('weekly', 'Weekly'), ('monthly', 'Monthly'), ('none', 'None')], default='none', max_length=10)),
                ('associated_bird_ids', models.JSONField(blank=True, default=list)),
                ('sub_tasks', models.JSONField(blank=True, default=list)),
                ('completed', models.BooleanField(default=False)),
            ],
            options={
                'db_table': 'notes',
                'ordering': ['-created_at'],
                'abstract': False,
                'constraints': [
                    models.UniqueConstraint(fields=('owner', 'item_id'), name='notereminderrow_owner_item_uniq'),
                ],
            },
        ),
        migrations.CreateModel(
            name='TransactionRow',
            fields=owned_fields() + [
                ('type', models.CharField(choices=[('income', 'Income'), ('expense', 'Expense')], max_length=10)),
                ('date', models.DateField()),
                ('description', models.CharField(max_length=500)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=12, validators=[MinValueValidator(0)])),
                ('related_bird_id', models.CharField(blank=True, db_index=True, max_length=64, null=True)),
            ],
            options={
                'db_table': 'transactions',
                'ordering': ['-created_at'],
                'abstract': False,
                'constraints': [
                    models.UniqueConstraint(fields=('owner', 'item_id'), name='transactionrow_owner_item_uniq'),
                ],
                'indexes': [
                    models.Index(fields=['owner', 'date'], name='transactions_owner_date_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='PermitRow',
            fields=owned_fields() + [
                ('permit_number', models.CharField(max_length=100)),
                ('issuing_authority', models.CharField(max_length=200)),
                ('issue_date', models.DateField(blank=True, null=True)),
                ('expiry_date', models.DateField(blank=True, null=True)),
            ],
            options={
                'db_table': 'permits',
                'ordering': ['-created_at'],
                'abstract': False,
                'constraints': [
                    models.UniqueConstraint(fields=('owner', 'item_id'), name='permitrow_owner_item_uniq'),
                ],
            },
        ),
        migrations.CreateModel(
            name='CustomSpeciesRow',
            fields=owned_fields() + [
                ('name', models.CharField(max_length=255)),
                ('incubation_period', models.PositiveIntegerField(blank=True, null=True)),
                ('subspecies', models.JSONField(blank=True, default=list)),
            ],
            options={
                'db_table': 'custom_species',
                'ordering': ['-created_at'],
                'abstract': False,
                'constraints': [
                    models.UniqueConstraint(fields=('owner', 'item_id'), name='customspeciesrow_owner_item_uniq'),
                ],
            },
        ),
        migrations.CreateModel(
            name='CustomMutationRow',
            fields=owned_fields() + [
                ('name', models.CharField(max_length=100)),
                ('inheritance', models.CharField(choices=[
                    ('Autosomal Recessive', 'Autosomal Recessive'),
                    ('Autosomal Dominant', 'Autosomal Dominant'),
                    ('Autosomal Co-dominant', 'Autosomal Co-dominant'),
                    ('Autosomal Incomplete Dominant', 'Autosomal Incomplete Dominant'),
                    ('Sex-Linked Recessive', 'Sex-Linked Recessive'),
                    ('Sex-Linked Dominant', 'Sex-Linked Dominant'),
                    ('Sex-Linked Co-dominant', 'Sex-Linked Co-dominant'),
                    ('Sex-Linked Incomplete Dominant', 'Sex-Linked Incomplete Dominant'),
                    ('Polygenic', 'Polygenic'),
                ], max_length=40)),
            ],
            options={
                'db_table': 'custom_mutations',
                'ordering': ['-created_at'],
                'abstract': False,
                'constraints': [
                    models.UniqueConstraint(fields=('owner', 'item_id'), name='custommutationrow_owner_item_uniq'),
                ],
            },
        ),
    ]
