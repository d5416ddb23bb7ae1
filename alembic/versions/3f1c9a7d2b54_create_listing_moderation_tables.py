"""Create listing moderation tables

Revision ID: 3f1c9a7d2b54
Revises:
Create Date: 2025-08-02 10:14:07.512381

"""
from alembic import op
import sqlalchemy as sa
import sqlmodel


# revision identifiers, used by Alembic.
revision = '3f1c9a7d2b54'
down_revision = None
branch_labels = None
depends_on = None

STATUS_VALUES = ('PENDING', 'APPROVED', 'REJECTED')


def upgrade() -> None:
    op.create_table('user_profiles',
    sa.Column('name', sqlmodel.sql.sqltypes.AutoString(length=100), nullable=False),
    sa.Column('role', sa.Enum('GUEST', 'OWNER', 'ADMIN', name='userrole'), nullable=False),
    sa.Column('principal', sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
    sa.Column('created_at', sa.DateTime(), nullable=False),
    sa.Column('updated_at', sa.DateTime(), nullable=True),
    sa.PrimaryKeyConstraint('principal')
    )
    op.create_table('listings',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('owner', sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
    sa.Column('title', sqlmodel.sql.sqltypes.AutoString(length=200), nullable=False),
    sa.Column('description', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
    sa.Column('location', sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
    sa.Column('price', sa.String(), nullable=False),
    sa.Column('property_type', sa.Enum('KOS', 'KONTRAKAN', name='propertytype'), nullable=False),
    sa.Column('facilities', sa.JSON(), nullable=True),
    sa.Column('rental_durations', sa.JSON(), nullable=True),
    sa.Column('photos', sa.JSON(), nullable=True),
    sa.Column('status', sa.Enum(*STATUS_VALUES, name='listingstatus'), nullable=False),
    sa.Column('rejection_reason', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
    sa.Column('created_at', sa.DateTime(), nullable=False),
    sa.Column('updated_at', sa.DateTime(), nullable=False),
    sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('listings', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_listings_owner'), ['owner'], unique=False)
        batch_op.create_index(batch_op.f('ix_listings_location'), ['location'], unique=False)
        batch_op.create_index(batch_op.f('ix_listings_status'), ['status'], unique=False)

    op.create_table('moderation_requests',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('kind', sa.Enum('EDIT', 'DELETE', name='requestkind'), nullable=False),
    sa.Column('listing_id', sa.Integer(), nullable=False),
    sa.Column('owner', sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
    sa.Column('status', sa.Enum(*STATUS_VALUES, name='requeststatus'), nullable=False),
    sa.Column('rejection_reason', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
    sa.Column('edited_listing', sa.JSON(), nullable=True),
    sa.Column('pending_key', sqlmodel.sql.sqltypes.AutoString(length=64), nullable=True),
    sa.Column('created_at', sa.DateTime(), nullable=False),
    sa.Column('reviewed_at', sa.DateTime(), nullable=True),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('pending_key')
    )
    with op.batch_alter_table('moderation_requests', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_moderation_requests_kind'), ['kind'], unique=False)
        batch_op.create_index(batch_op.f('ix_moderation_requests_listing_id'), ['listing_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_moderation_requests_owner'), ['owner'], unique=False)
        batch_op.create_index(batch_op.f('ix_moderation_requests_status'), ['status'], unique=False)

    op.create_table('audit_logs',
    sa.Column('action', sa.Enum(
        'LISTING_CREATED', 'LISTING_APPROVED', 'LISTING_REJECTED', 'PHOTO_ADDED',
        'EDIT_REQUEST_SUBMITTED', 'EDIT_REQUEST_APPROVED', 'EDIT_REQUEST_REJECTED',
        'DELETE_REQUEST_SUBMITTED', 'DELETE_REQUEST_APPROVED', 'DELETE_REQUEST_REJECTED',
        'PROFILE_CREATED', 'ROLE_ASSIGNED', 'LOG_CLEANUP',
        name='auditaction'), nullable=False),
    sa.Column('actor_principal', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
    sa.Column('entity_type', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
    sa.Column('entity_id', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
    sa.Column('details', sa.JSON(), nullable=True),
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('created_at', sa.DateTime(), nullable=False),
    sa.PrimaryKeyConstraint('id')
    )


def downgrade() -> None:
    op.drop_table('audit_logs')
    with op.batch_alter_table('moderation_requests', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_moderation_requests_status'))
        batch_op.drop_index(batch_op.f('ix_moderation_requests_owner'))
        batch_op.drop_index(batch_op.f('ix_moderation_requests_listing_id'))
        batch_op.drop_index(batch_op.f('ix_moderation_requests_kind'))

    op.drop_table('moderation_requests')
    with op.batch_alter_table('listings', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_listings_status'))
        batch_op.drop_index(batch_op.f('ix_listings_location'))
        batch_op.drop_index(batch_op.f('ix_listings_owner'))

    op.drop_table('listings')
    op.drop_table('user_profiles')
