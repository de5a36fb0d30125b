import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='CDAPrecinct',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.CharField(max_length=30, unique=True)),
                ('name', models.CharField(max_length=200)),
                ('canton', models.CharField(default='Morona', max_length=80)),
                ('parish', models.CharField(default='Macas', max_length=120)),
                ('address', models.TextField(blank=True, default='')),
                ('is_enabled', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='precincts_created', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Recinto CDA',
                'verbose_name_plural': 'Recintos CDA',
                'ordering': ['code', 'id'],
            },
        ),
        migrations.CreateModel(
            name='PrecinctContact',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('rector_name', models.CharField(blank=True, default='', max_length=160)),
                ('rector_phone', models.CharField(blank=True, default='', max_length=30)),
                ('rector_email', models.EmailField(blank=True, default='', max_length=254)),
                ('keys_name', models.CharField(blank=True, default='', max_length=160)),
                ('keys_phone', models.CharField(blank=True, default='', max_length=30)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('precinct', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='contact', to='precincts.cdaprecinct')),
            ],
            options={
                'verbose_name': 'Contacto de recinto',
                'verbose_name_plural': 'Contactos de recinto',
            },
        ),
    ]
