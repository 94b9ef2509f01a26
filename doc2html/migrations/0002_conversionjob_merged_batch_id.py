from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('doc2html', '0001_initial'),
    ]

    operations = [
        migrations.AddField(
            model_name='conversionjob',
            name='merged_batch_id',
            field=models.CharField(blank=True, editable=False, max_length=64, null=True, unique=True),
        ),
    ]
