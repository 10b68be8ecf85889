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
            name='AccessSession',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('session_id', models.CharField(help_text='Unique session identifier', max_length=64, unique=True)),
                ('ip_address', models.GenericIPAddressField(blank=True, help_text='Client IP address', null=True)),
                ('user_agent', models.CharField(blank=True, default='', help_text='Client user agent string', max_length=255)),
                ('started_at', models.DateTimeField(auto_now_add=True, help_text='Session start time')),
                ('last_activity', models.DateTimeField(auto_now=True, db_index=True, help_text='Last activity timestamp')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='access_sessions', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Access Session',
                'verbose_name_plural': 'Access Sessions',
                'ordering': ['-last_activity'],
                'indexes': [models.Index(fields=['user', '-last_activity'], name='session_user_activity_idx')],
            },
        ),
    ]
