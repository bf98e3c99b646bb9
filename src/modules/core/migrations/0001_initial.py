import uuid6
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Document",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid6.uuid7,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("collection", models.CharField(max_length=100)),
                ("key", models.CharField(max_length=255)),
                ("data", models.JSONField(default=dict)),
            ],
            options={
                "db_table": "documents",
                "ordering": ["collection", "created_at"],
                "indexes": [
                    models.Index(
                        fields=["collection"], name="documents_collection_idx"
                    )
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("collection", "key"),
                        name="documents_collection_key_uniq",
                    )
                ],
            },
        ),
    ]
