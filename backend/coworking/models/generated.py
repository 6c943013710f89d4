from sqlalchemy import Column, Float, ForeignKey, Integer, Text, UniqueConstraint, text

from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()
metadata = Base.metadata


class Clients(Base):
    __tablename__ = 'clients'

    first_name = Column(Text, nullable=False)
    id = Column(Integer, primary_key=True)
    last_name = Column(Text)
    phone = Column(Text)
    email = Column(Text)
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))

    rental_applications = relationship('RentalApplications', back_populates='client')
    invoices = relationship('Invoices', back_populates='client')

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.last_name, self.first_name) if p)


class Teachers(Base):
    __tablename__ = 'teachers'

    first_name = Column(Text, nullable=False)
    id = Column(Integer, primary_key=True)
    last_name = Column(Text)

    class_sessions = relationship('ClassSessions', back_populates='teacher')


class Rooms(Base):
    __tablename__ = 'rooms'

    id = Column(Integer, primary_key=True)
    name = Column(Text, nullable=False)
    number = Column(Text)
    hourly_rate = Column(Float, nullable=False, server_default=text('0'))
    daily_rate = Column(Float)
    daily_rate_coworking = Column(Float)
    weekly_rate_coworking = Column(Float)
    monthly_rate_coworking = Column(Float)
    is_coworking = Column(Integer, nullable=False, server_default=text('0'))
    is_active = Column(Integer, nullable=False, server_default=text('1'))

    workspaces = relationship('Workspaces', back_populates='room')
    rentals = relationship('Rentals', back_populates='room')
    class_sessions = relationship('ClassSessions', back_populates='room')
    events = relationship('Events', back_populates='room')
    reservations = relationship('Reservations', back_populates='room')
    rental_applications = relationship('RentalApplications', back_populates='room')


class Workspaces(Base):
    __tablename__ = 'workspaces'
    __table_args__ = (
        UniqueConstraint('room_id', 'name'),
    )

    room_id = Column(ForeignKey('rooms.id', ondelete='CASCADE'), nullable=False)
    name = Column(Text, nullable=False)
    daily_rate = Column(Float, nullable=False, server_default=text('0'))
    monthly_rate = Column(Float, nullable=False, server_default=text('0'))
    id = Column(Integer, primary_key=True)
    weekly_rate = Column(Float)
    is_active = Column(Integer, nullable=False, server_default=text('1'))

    room = relationship('Rooms', back_populates='workspaces')
    applications = relationship('RentalApplicationWorkspaces', back_populates='workspace')


class ClassSessions(Base):
    __tablename__ = 'class_sessions'

    room_id = Column(ForeignKey('rooms.id', ondelete='CASCADE'), nullable=False)
    date = Column(Text, nullable=False)
    start_time = Column(Text, nullable=False)
    end_time = Column(Text, nullable=False)
    status = Column(Text, nullable=False, server_default=text("'PLANNED'"))
    id = Column(Integer, primary_key=True)
    teacher_id = Column(ForeignKey('teachers.id', ondelete='SET NULL'))
    group_name = Column(Text)
    notes = Column(Text)

    room = relationship('Rooms', back_populates='class_sessions')
    teacher = relationship('Teachers', back_populates='class_sessions')


class Events(Base):
    __tablename__ = 'events'

    room_id = Column(ForeignKey('rooms.id', ondelete='CASCADE'), nullable=False)
    name = Column(Text, nullable=False)
    date = Column(Text, nullable=False)
    start_time = Column(Text, nullable=False)
    end_time = Column(Text, nullable=False)
    status = Column(Text, nullable=False, server_default=text("'PLANNED'"))
    id = Column(Integer, primary_key=True)
    event_type = Column(Text)

    room = relationship('Rooms', back_populates='events')


class Reservations(Base):
    __tablename__ = 'reservations'

    room_id = Column(ForeignKey('rooms.id', ondelete='CASCADE'), nullable=False)
    date = Column(Text, nullable=False)
    start_time = Column(Text, nullable=False)
    end_time = Column(Text, nullable=False)
    status = Column(Text, nullable=False, server_default=text("'PLANNED'"))
    id = Column(Integer, primary_key=True)
    reserved_by = Column(Text)
    notes = Column(Text)

    room = relationship('Rooms', back_populates='reservations')


class RentalApplications(Base):
    __tablename__ = 'rental_applications'

    application_number = Column(Text, nullable=False, unique=True)
    rental_type = Column(Text, nullable=False)
    client_id = Column(ForeignKey('clients.id', ondelete='RESTRICT'), nullable=False)
    period_type = Column(Text, nullable=False)
    start_date = Column(Text, nullable=False)
    base_price = Column(Float, nullable=False, server_default=text('0'))
    total_price = Column(Float, nullable=False, server_default=text('0'))
    price_unit = Column(Text, nullable=False, server_default=text("'HOUR'"))
    quantity = Column(Integer, nullable=False, server_default=text('1'))
    payment_type = Column(Text, nullable=False, server_default=text("'PREPAYMENT'"))
    status = Column(Text, nullable=False, server_default=text("'DRAFT'"))
    id = Column(Integer, primary_key=True)
    room_id = Column(ForeignKey('rooms.id', ondelete='SET NULL'))
    end_date = Column(Text)
    start_time = Column(Text)
    end_time = Column(Text)
    adjusted_price = Column(Float)
    adjustment_reason = Column(Text)
    manager_id = Column(Integer)
    notes = Column(Text)
    event_type = Column(Text)
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))
    updated_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))
    confirmed_at = Column(Text)

    room = relationship('Rooms', back_populates='rental_applications')
    client = relationship('Clients', back_populates='rental_applications')
    workspaces = relationship(
        'RentalApplicationWorkspaces',
        back_populates='rental_application',
        cascade='all, delete-orphan',
    )
    selected_days = relationship(
        'RentalApplicationDays',
        back_populates='rental_application',
        cascade='all, delete-orphan',
        order_by='RentalApplicationDays.date',
    )
    rentals = relationship(
        'Rentals',
        back_populates='rental_application',
        order_by='Rentals.id',
    )
    invoices = relationship('Invoices', back_populates='rental_application')

    @property
    def effective_price(self) -> float:
        if self.adjusted_price is not None:
            return self.adjusted_price
        return self.base_price

    @property
    def workspace_ids(self) -> list[int]:
        return [w.workspace_id for w in self.workspaces]

    @property
    def selected_dates(self) -> list[str]:
        return [d.date for d in self.selected_days]


class RentalApplicationWorkspaces(Base):
    __tablename__ = 'rental_application_workspaces'
    __table_args__ = (
        UniqueConstraint('rental_application_id', 'workspace_id'),
    )

    rental_application_id = Column(
        ForeignKey('rental_applications.id', ondelete='CASCADE'), nullable=False
    )
    workspace_id = Column(ForeignKey('workspaces.id', ondelete='CASCADE'), nullable=False)
    id = Column(Integer, primary_key=True)

    rental_application = relationship('RentalApplications', back_populates='workspaces')
    workspace = relationship('Workspaces', back_populates='applications')


class RentalApplicationDays(Base):
    __tablename__ = 'rental_application_days'

    rental_application_id = Column(
        ForeignKey('rental_applications.id', ondelete='CASCADE'), nullable=False
    )
    date = Column(Text, nullable=False)
    id = Column(Integer, primary_key=True)

    rental_application = relationship('RentalApplications', back_populates='selected_days')


class Rentals(Base):
    """A calendar slot. Applications own many; ad-hoc rentals own none."""

    __tablename__ = 'rentals'

    room_id = Column(ForeignKey('rooms.id', ondelete='CASCADE'), nullable=False)
    date = Column(Text, nullable=False)
    start_time = Column(Text, nullable=False)
    end_time = Column(Text, nullable=False)
    total_price = Column(Float, nullable=False, server_default=text('0'))
    status = Column(Text, nullable=False, server_default=text("'PLANNED'"))
    id = Column(Integer, primary_key=True)
    rental_application_id = Column(ForeignKey('rental_applications.id', ondelete='CASCADE'))
    rental_type = Column(Text)
    client_id = Column(ForeignKey('clients.id', ondelete='SET NULL'))
    client_name = Column(Text)
    client_phone = Column(Text)
    client_email = Column(Text)
    event_type = Column(Text)
    manager_id = Column(Integer)
    notes = Column(Text)

    room = relationship('Rooms', back_populates='rentals')
    rental_application = relationship('RentalApplications', back_populates='rentals')


class Invoices(Base):
    __tablename__ = 'invoices'

    invoice_number = Column(Text, nullable=False, unique=True)
    client_id = Column(ForeignKey('clients.id', ondelete='RESTRICT'), nullable=False)
    status = Column(Text, nullable=False, server_default=text("'PENDING'"))
    subtotal = Column(Float, nullable=False, server_default=text('0'))
    total_amount = Column(Float, nullable=False, server_default=text('0'))
    id = Column(Integer, primary_key=True)
    rental_application_id = Column(ForeignKey('rental_applications.id', ondelete='SET NULL'))
    notes = Column(Text)
    paid_at = Column(Text)
    created_by = Column(Integer)
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))

    client = relationship('Clients', back_populates='invoices')
    rental_application = relationship('RentalApplications', back_populates='invoices')
    items = relationship('InvoiceItems', back_populates='invoice', cascade='all, delete-orphan')


class InvoiceItems(Base):
    __tablename__ = 'invoice_items'

    invoice_id = Column(ForeignKey('invoices.id', ondelete='CASCADE'), nullable=False)
    service_type = Column(Text, nullable=False)
    service_name = Column(Text, nullable=False)
    quantity = Column(Float, nullable=False, server_default=text('1'))
    base_price = Column(Float, nullable=False, server_default=text('0'))
    unit_price = Column(Float, nullable=False, server_default=text('0'))
    total_price = Column(Float, nullable=False, server_default=text('0'))
    id = Column(Integer, primary_key=True)
    service_description = Column(Text)
    room_id = Column(ForeignKey('rooms.id', ondelete='SET NULL'))
    vat_rate = Column(Float, nullable=False, server_default=text('0'))
    vat_amount = Column(Float, nullable=False, server_default=text('0'))
    discount_percent = Column(Float, nullable=False, server_default=text('0'))
    discount_amount = Column(Float, nullable=False, server_default=text('0'))
    is_price_adjusted = Column(Integer, nullable=False, server_default=text('0'))
    adjustment_reason = Column(Text)

    invoice = relationship('Invoices', back_populates='items')
