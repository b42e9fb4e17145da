from alembic import op
import sqlalchemy as sa

revision = '0001_init'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table('athletes',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('strava_athlete_id', sa.BigInteger, nullable=False, unique=True),
        sa.Column('name', sa.String(200), nullable=False, server_default=''),
        sa.Column('last_activity_id', sa.BigInteger, nullable=False, server_default='0'),
        sa.Column('strava_access_token', sa.String(512)),
        sa.Column('strava_refresh_token', sa.String(512)),
        sa.Column('strava_token_expires_at', sa.Integer),
    )

    op.create_table('summits',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('athlete_id', sa.BigInteger, nullable=False),
        sa.Column('year', sa.Integer, nullable=False),
        sa.Column('run', sa.Float, nullable=False, server_default='0'),
        sa.Column('ride', sa.Float, nullable=False, server_default='0'),
        sa.UniqueConstraint('athlete_id', 'year', name='uq_summit_year')
    )
    op.create_index('ix_summits_athlete_id', 'summits', ['athlete_id'])

    op.create_table('summit_activities',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('athlete_id', sa.BigInteger, nullable=False),
        sa.Column('activity_id', sa.BigInteger, nullable=False),
        sa.UniqueConstraint('athlete_id', 'activity_id', name='uq_summit_activity')
    )

def downgrade():
    op.drop_table('summit_activities')
    op.drop_index('ix_summits_athlete_id', table_name='summits')
    op.drop_table('summits')
    op.drop_table('athletes')
