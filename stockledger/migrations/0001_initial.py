"""
Initial migration for Stockledger models.
"""

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):
    """Create Stockledger models: Product, Movement."""

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Product',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.CharField(help_text='Identificador único legível (ex: código de barras, SKU)', max_length=64, unique=True, verbose_name='Código')),
                ('name', models.CharField(blank=True, default='', max_length=200, verbose_name='Nome')),
                ('stock', models.IntegerField(default=0, verbose_name='Estoque')),
                ('initial_stock', models.IntegerField(default=0, editable=False, help_text='Estoque no momento do cadastro. Base do livro de movimentos.', verbose_name='Estoque inicial')),
                ('allow_negative_stock', models.BooleanField(default=False, verbose_name='Permite estoque negativo')),
                ('min_stock', models.PositiveIntegerField(blank=True, null=True, verbose_name='Estoque mínimo')),
                ('max_stock', models.PositiveIntegerField(blank=True, null=True, verbose_name='Estoque máximo')),
                ('version', models.PositiveIntegerField(default=0, editable=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Produto',
                'verbose_name_plural': 'Produtos',
                'ordering': ['code'],
            },
        ),
        migrations.CreateModel(
            name='Movement',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('direction', models.CharField(choices=[('entry', 'Entrada'), ('exit', 'Saída')], max_length=10, verbose_name='Tipo')),
                ('quantity', models.PositiveIntegerField(verbose_name='Quantidade')),
                ('reason', models.CharField(choices=[('inventory_adjustment', 'Ajuste de inventário'), ('new_stock', 'Estoque novo'), ('returned_product', 'Produto devolvido'), ('sale', 'Venda'), ('damaged', 'Avariado'), ('lost', 'Extraviado'), ('transfer', 'Transferência')], max_length=32, verbose_name='Motivo')),
                ('old_stock', models.IntegerField(verbose_name='Estoque anterior')),
                ('new_stock', models.IntegerField(verbose_name='Estoque novo')),
                ('notes', models.TextField(blank=True, default='', verbose_name='Observações')),
                ('source_code', models.CharField(blank=True, default='', help_text='Código escaneado que originou o movimento, se houver', max_length=128, verbose_name='Código lido')),
                ('actor_id', models.CharField(db_index=True, max_length=64, verbose_name='ID do Usuário')),
                ('actor_name', models.CharField(blank=True, default='', max_length=150, verbose_name='Usuário')),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now, verbose_name='Data/Hora')),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='movements', to='stockledger.product', verbose_name='Produto')),
            ],
            options={
                'verbose_name': 'Movimento',
                'verbose_name_plural': 'Movimentos',
                'ordering': ['-created_at', '-id'],
                'indexes': [
                    models.Index(fields=['product', 'created_at'], name='movement_product_created_idx'),
                    models.Index(fields=['direction', 'reason'], name='movement_direction_reason_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('quantity__gt', 0)), name='movement_quantity_positive'),
                ],
            },
        ),
    ]
