import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('members', '0001_initial'),
        ('precincts', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='ElectoralProcess',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('start_date', models.DateField()),
                ('end_date', models.DateField()),
                ('image', models.ImageField(blank=True, null=True, upload_to='process-images/')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='processes_created', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Proceso electoral',
                'verbose_name_plural': 'Procesos electorales',
                'ordering': ['-created_at', '-id'],
            },
        ),
        migrations.CreateModel(
            name='Assignment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('member_type', models.CharField(choices=[('CPE', 'CPE'), ('CDA', 'CDA')], max_length=3)),
                ('role', models.CharField(blank=True, choices=[('Supervisor', 'Supervisor'), ('Revisor', 'Revisor de Firmas'), ('Digitador', 'Digitador'), ('Archivador', 'Archivador de Actas'), ('Receptor', 'Receptor de Actas'), ('Operador', 'Operador de Escáner'), ('Administrador', 'Administrador Técnico Provincial')], default='', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('cda_precinct', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='assignments', to='precincts.cdaprecinct')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='assignments_created', to=settings.AUTH_USER_MODEL)),
                ('member', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='assignments', to='members.member')),
                ('process', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='assignments', to='elections.electoralprocess')),
            ],
            options={
                'verbose_name': 'Asignación',
                'verbose_name_plural': 'Asignaciones',
                'ordering': ['-created_at', '-id'],
                'constraints': [
                    models.UniqueConstraint(fields=('member', 'process'), name='uniq_assignment_member_process'),
                    models.CheckConstraint(condition=models.Q(models.Q(('member_type', 'CPE'), models.Q(('role', ''), _negated=True), ('cda_precinct__isnull', True)), models.Q(('member_type', 'CDA'), ('role', ''), ('cda_precinct__isnull', False)), _connector='OR'), name='assignment_detail_matches_member_type'),
                ],
            },
        ),
    ]
