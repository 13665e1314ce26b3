"""create ingredient dictionary

Revision ID: 001_ingredient_dictionary
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001_ingredient_dictionary'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Write-once translation cache: one row per canonical name, never updated
    op.create_table(
        'ingredient_dictionary',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),

        # Canonical identification
        sa.Column('lookup_key', sa.Text, nullable=False, unique=True, comment='lower(trim(name_en)), uniqueness key'),
        sa.Column('name_en', sa.Text, nullable=False, comment='Canonical English name as first stored'),

        # Translations (from AI)
        sa.Column('name_pl', sa.Text, nullable=False, comment='Polish translation'),
        sa.Column('name_ru', sa.Text, nullable=False, comment='Russian translation'),
        sa.Column('name_uk', sa.Text, nullable=False, comment='Ukrainian translation'),

        # Classification (from the same AI call)
        sa.Column('category', sa.Text, comment='dairy_and_eggs, fruits, vegetables, ...'),
        sa.Column('unit', sa.Text, comment='gram, kilogram, liter, piece, ...'),

        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.text('NOW()')),

        sa.CheckConstraint("TRIM(lookup_key) <> ''", name='ck_ingredient_dictionary_key_not_empty'),
        sa.CheckConstraint(
            "TRIM(name_en) <> '' AND TRIM(name_pl) <> '' AND TRIM(name_ru) <> '' AND TRIM(name_uk) <> ''",
            name='ck_ingredient_dictionary_names_not_empty',
        ),
    )

    op.create_index('idx_ingredient_dictionary_created_at', 'ingredient_dictionary', [sa.text('created_at DESC')])

    op.execute("""
        COMMENT ON TABLE ingredient_dictionary IS
        'Ingredient translation cache. Checked before every AI call; rows are inserted once and never modified.'
    """)


def downgrade() -> None:
    op.drop_index('idx_ingredient_dictionary_created_at', 'ingredient_dictionary')
    op.drop_table('ingredient_dictionary')
