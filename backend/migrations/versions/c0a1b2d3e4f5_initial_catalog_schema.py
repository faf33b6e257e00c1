"""initial catalog schema

Revision ID: c0a1b2d3e4f5
Revises:
Create Date: 2026-10-18 00:00:00.000000

Creates the complete schema from scratch:
- users, roles, permissions, roles_permissions, user_roles: identity + RBAC
- refresh_tokens: persisted refresh sessions (SHA-256 digests only)
- brands, categories: catalog reference data (category tree via parent_id)
- products + products_attributes, product_media, product_seo
- product_options, product_option_values, product_variants,
  variant_option_values: the variant graph rewritten by variant sync
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'c0a1b2d3e4f5'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
    ]


def upgrade():
    """
    Create all tables.

    WHY string ids: UUIDs are generated application-side so the same
    schema runs on PostgreSQL and SQLite.
    """

    # ============================================================================
    # Identity and RBAC
    # ============================================================================
    op.create_table(
        'users',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('phone_number', sa.String(length=32), nullable=True),
        sa.Column('company_id', sa.String(length=36), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_users'),
        sa.UniqueConstraint('email', name='uq_users_email'),
    )
    op.create_index('ix_users_email', 'users', ['email'])

    op.create_table(
        'roles',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_roles'),
        sa.UniqueConstraint('name', name='uq_roles_name'),
    )

    op.create_table(
        'permissions',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(length=32), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_permissions'),
        sa.UniqueConstraint('name', name='uq_permissions_name'),
    )
    op.create_index('ix_permissions_category', 'permissions', ['category'])

    op.create_table(
        'roles_permissions',
        sa.Column('role_id', sa.String(length=36), nullable=False),
        sa.Column('permission_id', sa.String(length=36), nullable=False),
        sa.ForeignKeyConstraint(['role_id'], ['roles.id'],
                                name='fk_roles_permissions_role_id_roles', ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['permission_id'], ['permissions.id'],
                                name='fk_roles_permissions_permission_id_permissions', ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('role_id', 'permission_id', name='pk_roles_permissions'),
    )

    # One active role per user: user_id is the primary key
    op.create_table(
        'user_roles',
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('role_id', sa.String(length=36), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'],
                                name='fk_user_roles_user_id_users', ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['role_id'], ['roles.id'], name='fk_user_roles_role_id_roles'),
        sa.PrimaryKeyConstraint('user_id', name='pk_user_roles'),
    )
    op.create_index('ix_user_roles_role_id', 'user_roles', ['role_id'])

    op.create_table(
        'refresh_tokens',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('token_hash', sa.String(length=64), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('revoked', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('revoked_at', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'],
                                name='fk_refresh_tokens_user_id_users', ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name='pk_refresh_tokens'),
        sa.UniqueConstraint('token_hash', name='uq_refresh_tokens_token_hash'),
    )
    op.create_index('ix_refresh_tokens_user_id', 'refresh_tokens', ['user_id'])
    op.create_index('ix_refresh_tokens_expires_at', 'refresh_tokens', ['expires_at'])
    op.create_index('ix_refresh_tokens_user_revoked', 'refresh_tokens', ['user_id', 'revoked'])

    # ============================================================================
    # Catalog reference data
    # ============================================================================
    op.create_table(
        'brands',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('slug', sa.String(length=255), nullable=False),
        sa.Column('logo_url', sa.Text(), nullable=True),
        sa.Column('website_url', sa.Text(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_brands'),
        sa.UniqueConstraint('slug', name='uq_brands_slug'),
    )

    op.create_table(
        'categories',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('slug', sa.String(length=255), nullable=False),
        sa.Column('parent_id', sa.String(length=36), nullable=True),
        sa.Column('level', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['parent_id'], ['categories.id'],
                                name='fk_categories_parent_id_categories'),
        sa.PrimaryKeyConstraint('id', name='pk_categories'),
        sa.UniqueConstraint('slug', name='uq_categories_slug'),
    )
    op.create_index('ix_categories_parent_id', 'categories', ['parent_id'])

    # ============================================================================
    # Products
    # ============================================================================
    # WHY status CHECK: DRAFT -> ACTIVE on SEO save, any -> ARCHIVED on delete
    op.create_table(
        'products',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('slug', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('seller_id', sa.String(length=36), nullable=False),
        sa.Column('brand_id', sa.String(length=36), nullable=True),
        sa.Column('category_id', sa.String(length=36), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='DRAFT'),
        *_timestamps(),
        sa.CheckConstraint("status IN ('DRAFT', 'ACTIVE', 'ARCHIVED')",
                           name='ck_products_product_status'),
        sa.ForeignKeyConstraint(['seller_id'], ['users.id'], name='fk_products_seller_id_users'),
        sa.ForeignKeyConstraint(['brand_id'], ['brands.id'], name='fk_products_brand_id_brands'),
        sa.ForeignKeyConstraint(['category_id'], ['categories.id'],
                                name='fk_products_category_id_categories'),
        sa.PrimaryKeyConstraint('id', name='pk_products'),
        sa.UniqueConstraint('slug', name='uq_products_slug'),
    )
    op.create_index('ix_products_seller_id', 'products', ['seller_id'])
    op.create_index('ix_products_brand_id', 'products', ['brand_id'])
    op.create_index('ix_products_category_id', 'products', ['category_id'])
    op.create_index('ix_products_status_created', 'products', ['status', 'created_at'])

    op.create_table(
        'products_attributes',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('product_id', sa.String(length=36), nullable=False),
        sa.Column('attribute_key', sa.String(length=128), nullable=False),
        sa.Column('attribute_value', sa.Text(), nullable=False),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'],
                                name='fk_products_attributes_product_id_products', ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name='pk_products_attributes'),
        sa.UniqueConstraint('product_id', 'attribute_key', name='uq_products_attributes_product_key'),
    )
    op.create_index('ix_products_attributes_product_id', 'products_attributes', ['product_id'])

    # ============================================================================
    # Variant graph
    # ============================================================================
    op.create_table(
        'product_options',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('product_id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'],
                                name='fk_product_options_product_id_products', ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name='pk_product_options'),
    )
    op.create_index('ix_product_options_product_id', 'product_options', ['product_id'])

    op.create_table(
        'product_option_values',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('option_id', sa.String(length=36), nullable=False),
        sa.Column('value', sa.String(length=128), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.ForeignKeyConstraint(['option_id'], ['product_options.id'],
                                name='fk_product_option_values_option_id_product_options',
                                ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name='pk_product_option_values'),
    )
    op.create_index('ix_product_option_values_option_id', 'product_option_values', ['option_id'])

    # WHY sku unique: variant sync upserts ON CONFLICT (sku), keeping ids stable
    op.create_table(
        'product_variants',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('product_id', sa.String(length=36), nullable=False),
        sa.Column('sku', sa.String(length=100), nullable=False),
        sa.Column('price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('weight', sa.Numeric(precision=10, scale=3), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'],
                                name='fk_product_variants_product_id_products', ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name='pk_product_variants'),
        sa.UniqueConstraint('sku', name='uq_product_variants_sku'),
    )
    op.create_index('ix_product_variants_product_id', 'product_variants', ['product_id'])

    op.create_table(
        'variant_option_values',
        sa.Column('variant_id', sa.String(length=36), nullable=False),
        sa.Column('option_value_id', sa.String(length=36), nullable=False),
        sa.ForeignKeyConstraint(['variant_id'], ['product_variants.id'],
                                name='fk_variant_option_values_variant_id_product_variants',
                                ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['option_value_id'], ['product_option_values.id'],
                                name='fk_variant_option_values_option_value_id_product_option_values',
                                ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('variant_id', 'option_value_id', name='pk_variant_option_values'),
    )

    # ============================================================================
    # Media and SEO
    # ============================================================================
    op.create_table(
        'product_media',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('product_id', sa.String(length=36), nullable=False),
        sa.Column('variant_id', sa.String(length=36), nullable=True),
        sa.Column('url', sa.Text(), nullable=False),
        sa.Column('media_type', sa.String(length=16), nullable=False, server_default='image'),
        sa.Column('display_order', sa.Integer(), nullable=False, server_default='0'),
        sa.CheckConstraint("media_type IN ('image', 'video', 'pdf')",
                           name='ck_product_media_product_media_type'),
        sa.CheckConstraint('display_order >= 0', name='ck_product_media_product_media_display_order'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'],
                                name='fk_product_media_product_id_products', ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['variant_id'], ['product_variants.id'],
                                name='fk_product_media_variant_id_product_variants', ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id', name='pk_product_media'),
    )
    op.create_index('ix_product_media_product_id', 'product_media', ['product_id'])

    op.create_table(
        'product_seo',
        sa.Column('product_id', sa.String(length=36), nullable=False),
        sa.Column('meta_title', sa.String(length=255), nullable=True),
        sa.Column('meta_description', sa.Text(), nullable=True),
        sa.Column('og_image_url', sa.Text(), nullable=True),
        sa.Column('keywords', sa.JSON(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'],
                                name='fk_product_seo_product_id_products', ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('product_id', name='pk_product_seo'),
    )


def downgrade():
    op.drop_table('product_seo')
    op.drop_table('product_media')
    op.drop_table('variant_option_values')
    op.drop_table('product_variants')
    op.drop_table('product_option_values')
    op.drop_table('product_options')
    op.drop_table('products_attributes')
    op.drop_table('products')
    op.drop_table('categories')
    op.drop_table('brands')
    op.drop_table('refresh_tokens')
    op.drop_table('user_roles')
    op.drop_table('roles_permissions')
    op.drop_table('permissions')
    op.drop_table('roles')
    op.drop_table('users')
