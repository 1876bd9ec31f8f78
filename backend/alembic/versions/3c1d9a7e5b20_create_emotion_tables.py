"""create_emotion_tables

Revision ID: 3c1d9a7e5b20
Revises:
Create Date: 2026-10-18 09:12:44.217305

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3c1d9a7e5b20'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('username', sa.String(length=50), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=100), nullable=True),
        sa.Column('avatar_url', sa.String(length=500), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('last_login', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_username', 'users', ['username'], unique=True)
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'sessions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=True),
        sa.Column('session_name', sa.String(length=255), nullable=False),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('duration_seconds', sa.Integer(), nullable=True),
        sa.Column('total_detections', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('accuracy_score', sa.Float(), nullable=True),
        sa.Column('device_info', sa.String(length=500), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.Column('location', sa.String(length=255), nullable=True),
        sa.Column('is_completed', sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index('ix_sessions_id', 'sessions', ['id'])
    op.create_index('ix_sessions_user_id', 'sessions', ['user_id'])
    op.create_index('ix_sessions_start_time', 'sessions', ['start_time'])

    op.create_table(
        'images',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=True),
        sa.Column('session_id', sa.Integer(), sa.ForeignKey('sessions.id', ondelete='CASCADE'), nullable=True),
        sa.Column('filename', sa.String(length=255), nullable=False),
        sa.Column('original_filename', sa.String(length=255), nullable=True),
        sa.Column('file_path', sa.String(length=500), nullable=False),
        sa.Column('file_size', sa.Integer(), nullable=True),
        sa.Column('mime_type', sa.String(length=50), nullable=True),
        sa.Column('width', sa.Integer(), nullable=True),
        sa.Column('height', sa.Integer(), nullable=True),
        sa.Column('upload_timestamp', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_processed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('processing_status', sa.String(length=50), nullable=False, server_default='pending'),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.Column('thumbnail_path', sa.String(length=500), nullable=True),
    )
    op.create_index('ix_images_id', 'images', ['id'])
    op.create_index('ix_images_user_id', 'images', ['user_id'])
    op.create_index('ix_images_session_id', 'images', ['session_id'])

    op.create_table(
        'emotions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('session_id', sa.Integer(), sa.ForeignKey('sessions.id', ondelete='CASCADE'), nullable=False),
        sa.Column('emotion_type', sa.String(length=50), nullable=False),
        sa.Column('confidence_score', sa.Float(), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.Column('face_coordinates', sa.JSON(), nullable=True),
        sa.Column('age_estimate', sa.Integer(), nullable=True),
        sa.Column('gender_estimate', sa.String(length=10), nullable=True),
        sa.Column('image_id', sa.Integer(), sa.ForeignKey('images.id', ondelete='SET NULL'), nullable=True),
        sa.Column('processing_time_ms', sa.Integer(), nullable=True),
        sa.Column('raw_data', sa.JSON(), nullable=True),
    )
    op.create_index('ix_emotions_id', 'emotions', ['id'])
    op.create_index('ix_emotions_session_id', 'emotions', ['session_id'])
    op.create_index('ix_emotions_emotion_type', 'emotions', ['emotion_type'])
    op.create_index('ix_emotions_timestamp', 'emotions', ['timestamp'])
    op.create_index('ix_emotions_image_id', 'emotions', ['image_id'])

    op.create_table(
        'emotion_summaries',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=True),
        sa.Column('session_id', sa.Integer(), sa.ForeignKey('sessions.id', ondelete='CASCADE'), nullable=False),
        sa.Column('emotion_type', sa.String(length=50), nullable=False),
        sa.Column('count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('average_confidence', sa.Float(), nullable=True),
        sa.Column('first_detected', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_detected', sa.DateTime(timezone=True), nullable=True),
        sa.Column('percentage_of_total', sa.Float(), nullable=True),
        sa.UniqueConstraint('session_id', 'emotion_type', name='uq_summary_session_emotion'),
    )
    op.create_index('ix_emotion_summaries_id', 'emotion_summaries', ['id'])
    op.create_index('ix_emotion_summaries_user_id', 'emotion_summaries', ['user_id'])
    op.create_index('ix_emotion_summaries_session_id', 'emotion_summaries', ['session_id'])


def downgrade() -> None:
    op.drop_table('emotion_summaries')
    op.drop_table('emotions')
    op.drop_table('images')
    op.drop_table('sessions')
    op.drop_table('users')
