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
            name='File',
            fields=[
                ('id', models.UUIDField(editable=False, primary_key=True, serialize=False)),
                ('object_key', models.CharField(editable=False, help_text='Key in blob store: user/{owner_id}/{yyyy}/{mm}/{file_id}', max_length=255, unique=True)),
                ('original_name', models.CharField(help_text='File name as uploaded or last renamed', max_length=255)),
                ('size_bytes', models.BigIntegerField(help_text='Number of bytes written to the blob store')),
                ('content_type', models.CharField(max_length=255)),
                ('sha256', models.CharField(db_index=True, help_text='SHA256 of the stored bytes', max_length=64)),
                ('created_at', models.DateTimeField()),
                ('deleted_at', models.DateTimeField(blank=True, help_text='Set when the file is soft-deleted', null=True)),
                ('owner', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='files', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'File',
                'verbose_name_plural': 'Files',
                'ordering': ['-created_at', '-id'],
                'indexes': [models.Index(fields=['owner', '-created_at'], name='files_owner_recent_idx')],
                'constraints': [models.CheckConstraint(condition=models.Q(('size_bytes__gte', 0)), name='files_size_bytes_non_negative')],
            },
        ),
    ]
