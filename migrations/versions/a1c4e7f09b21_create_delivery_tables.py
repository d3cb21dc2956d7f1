"""create delivery tables

Revision ID: a1c4e7f09b21
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = 'a1c4e7f09b21'
down_revision = None
branch_labels = None
depends_on = None

ORDER_STATUS = sa.Enum(
    'PENDING', 'CONFIRMED', 'PREPARING', 'READY', 'PICKED_UP', 'ON_WAY', 'DELIVERED', 'CANCELLED',
    name='orderstatus'
)
ACTOR_TYPE = sa.Enum('SYSTEM', 'CUSTOMER', 'RESTAURANT', 'DRIVER', 'ADMIN', name='actortype')
RECIPIENT_TYPE = sa.Enum('CUSTOMER', 'RESTAURANT', 'DRIVER', 'ADMIN', name='recipienttype')


def upgrade():
    op.create_table('restaurants',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('delivery_time', sa.String(length=50), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table('drivers',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=20), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('vehicle_type', sa.String(length=50), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('is_available', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email')
    )
    op.create_index('ix_drivers_phone', 'drivers', ['phone'], unique=True)
    op.create_index('ix_drivers_is_available', 'drivers', ['is_available'], unique=False)

    op.create_table('orders',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('order_number', sa.String(length=50), nullable=False),
        sa.Column('customer_id', sa.String(length=36), nullable=True),
        sa.Column('customer_name', sa.String(length=255), nullable=False),
        sa.Column('customer_phone', sa.String(length=20), nullable=False),
        sa.Column('customer_email', sa.String(length=255), nullable=True),
        sa.Column('delivery_address', sa.Text(), nullable=False),
        sa.Column('customer_location_lat', sa.Float(), nullable=True),
        sa.Column('customer_location_lng', sa.Float(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('payment_method', sa.String(length=50), nullable=False, server_default='cash'),
        sa.Column('status', ORDER_STATUS, nullable=False),
        sa.Column('items', sa.Text(), nullable=False),
        sa.Column('subtotal', sa.Numeric(10, 2), nullable=False),
        sa.Column('delivery_fee', sa.Numeric(10, 2), nullable=False),
        sa.Column('total_amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('driver_earnings', sa.Numeric(10, 2), nullable=False),
        sa.Column('restaurant_id', sa.String(length=36), nullable=False),
        sa.Column('driver_id', sa.String(length=36), nullable=True),
        sa.Column('estimated_time', sa.String(length=50), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(), nullable=True),
        sa.Column('cancellation_reason', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['restaurant_id'], ['restaurants.id']),
        sa.ForeignKeyConstraint(['driver_id'], ['drivers.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_orders_order_number', 'orders', ['order_number'], unique=True)
    op.create_index('ix_orders_customer_id', 'orders', ['customer_id'], unique=False)
    op.create_index('ix_orders_customer_phone', 'orders', ['customer_phone'], unique=False)
    op.create_index('ix_orders_status', 'orders', ['status'], unique=False)
    op.create_index('ix_orders_restaurant_id', 'orders', ['restaurant_id'], unique=False)
    op.create_index('ix_orders_driver_id', 'orders', ['driver_id'], unique=False)
    op.create_index('ix_orders_created_at', 'orders', ['created_at'], unique=False)

    op.create_table('order_tracking',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('order_id', sa.String(length=36), nullable=False),
        sa.Column('status', ORDER_STATUS, nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('created_by', sa.String(length=64), nullable=False),
        sa.Column('created_by_type', ACTOR_TYPE, nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_order_tracking_order_id', 'order_tracking', ['order_id'], unique=False)

    op.create_table('notifications',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('type', sa.String(length=50), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('recipient_type', RECIPIENT_TYPE, nullable=False),
        sa.Column('recipient_id', sa.String(length=64), nullable=True),
        sa.Column('order_id', sa.String(length=36), nullable=True),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_notifications_recipient_type', 'notifications', ['recipient_type'], unique=False)
    op.create_index('ix_notifications_recipient_id', 'notifications', ['recipient_id'], unique=False)
    op.create_index('ix_notifications_order_id', 'notifications', ['order_id'], unique=False)


def downgrade():
    op.drop_index('ix_notifications_order_id', table_name='notifications')
    op.drop_index('ix_notifications_recipient_id', table_name='notifications')
    op.drop_index('ix_notifications_recipient_type', table_name='notifications')
    op.drop_table('notifications')

    op.drop_index('ix_order_tracking_order_id', table_name='order_tracking')
    op.drop_table('order_tracking')

    op.drop_index('ix_orders_created_at', table_name='orders')
    op.drop_index('ix_orders_driver_id', table_name='orders')
    op.drop_index('ix_orders_restaurant_id', table_name='orders')
    op.drop_index('ix_orders_status', table_name='orders')
    op.drop_index('ix_orders_customer_phone', table_name='orders')
    op.drop_index('ix_orders_customer_id', table_name='orders')
    op.drop_index('ix_orders_order_number', table_name='orders')
    op.drop_table('orders')

    op.drop_index('ix_drivers_is_available', table_name='drivers')
    op.drop_index('ix_drivers_phone', table_name='drivers')
    op.drop_table('drivers')

    op.drop_table('restaurants')

    # PostgreSQL keeps enum types around after the tables are gone
    bind = op.get_bind()
    RECIPIENT_TYPE.drop(bind, checkfirst=True)
    ACTOR_TYPE.drop(bind, checkfirst=True)
    ORDER_STATUS.drop(bind, checkfirst=True)
