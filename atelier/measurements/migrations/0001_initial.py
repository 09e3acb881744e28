# Generated manually

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('orders', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Measurement',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('measurements', models.JSONField(default=dict)),
                ('notes', models.TextField(blank=True, null=True)),
                ('taken_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('garment', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='measurements', to='orders.garment')),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='measurements', to='orders.order')),
                ('taken_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='measurements_taken', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'measurements',
                'ordering': ['-taken_at'],
                'indexes': [
                    models.Index(fields=['order', '-taken_at'], name='measurements_order_idx'),
                    models.Index(fields=['garment', '-taken_at'], name='measurements_garment_idx'),
                ],
            },
        ),
    ]
