"""
Сводка для администратора: счётчики пользователей и тикетов,
производительность инженеров, состояние системы.
"""
from datetime import datetime, timedelta

from flask import current_app
from sqlalchemy import func

from portal.core import get_db, get_cache
from portal.enums import Role, TicketStatus, FINISHED_STATUSES
from portal.models import Ticket, User
from portal.utils import utcnow, round2
from portal.analytics import resolution_rate, resolution_hours

db = get_db()

DASHBOARD_CACHE_KEY = 'admin_dashboard_stats'
DASHBOARD_CACHE_TIMEOUT = 60
HIGH_LOAD_THRESHOLD = 10
SLOW_RESOLUTION_HOURS = 48


def average_resolution_hours(tickets=None):
    if tickets is None:
        tickets = Ticket.query.filter(Ticket.status.in_(FINISHED_STATUSES), Ticket.closed_at.isnot(None)).all()
    hours = resolution_hours(tickets)
    return round2(sum(hours) / len(hours)) if hours else 0.0


def compute_dashboard_stats(now=None):
    now = now or utcnow()
    start_of_today = datetime(now.year, now.month, now.day)
    week_ago = now - timedelta(days=7)
    month_ago = now - timedelta(days=30)

    by_status = dict(db.session.query(Ticket.status, func.count(Ticket.id)).group_by(Ticket.status).all())
    by_role = dict(db.session.query(User.role, func.count(User.id)).group_by(User.role).all())
    total_tickets = sum(by_status.values())
    resolved = by_status.get(TicketStatus.RESOLVED.value, 0)
    closed = by_status.get(TicketStatus.CLOSED.value, 0)
    active_engineers = User.query.filter_by(role=Role.ENGINEER.value, is_active=True).count()
    finished = Ticket.status.in_(FINISHED_STATUSES)

    return {
        'total_users': sum(by_role.values()),
        'active_users': User.query.filter_by(is_active=True).count(),
        'inactive_users': User.query.filter_by(is_active=False).count(),
        'total_engineers': by_role.get(Role.ENGINEER.value, 0),
        'total_admins': by_role.get(Role.ADMIN.value, 0),
        'new_users_today': User.query.filter(User.created_at >= start_of_today).count(),
        'new_users_this_week': User.query.filter(User.created_at >= week_ago).count(),
        'new_users_this_month': User.query.filter(User.created_at >= month_ago).count(),

        'total_tickets': total_tickets,
        'new_tickets': by_status.get(TicketStatus.NEW.value, 0),
        'in_progress_tickets': by_status.get(TicketStatus.IN_PROGRESS.value, 0),
        'resolved_tickets': resolved,
        'closed_tickets': closed,
        'unassigned_tickets': Ticket.query.filter(Ticket.assignee_id.is_(None)).count(),
        'tickets_created_today': Ticket.query.filter(Ticket.created_at >= start_of_today).count(),
        'tickets_created_this_week': Ticket.query.filter(Ticket.created_at >= week_ago).count(),
        'tickets_created_this_month': Ticket.query.filter(Ticket.created_at >= month_ago).count(),
        'tickets_resolved_today': Ticket.query.filter(finished, Ticket.closed_at >= start_of_today).count(),
        'tickets_resolved_this_week': Ticket.query.filter(finished, Ticket.closed_at >= week_ago).count(),
        'tickets_resolved_this_month': Ticket.query.filter(finished, Ticket.closed_at >= month_ago).count(),

        'average_resolution_time_hours': average_resolution_hours(),
        'ticket_resolution_rate': round2(resolution_rate(total_tickets, resolved, closed)),
        'active_engineers': active_engineers,
        'average_tickets_per_engineer': round2(total_tickets / active_engineers) if active_engineers else 0.0,
        'generated_at': now.isoformat(),
    }


def dashboard_stats(use_cache=True):
    """Сводка с коротким кэшированием"""
    cache = get_cache()
    if use_cache:
        cached = cache.get(DASHBOARD_CACHE_KEY)
        if cached is not None:
            return cached
    stats = compute_dashboard_stats()
    cache.set(DASHBOARD_CACHE_KEY, stats, timeout=DASHBOARD_CACHE_TIMEOUT)
    return stats


def engineer_performance():
    """Все инженеры, самые загруженные первыми"""
    engineers = User.query.filter_by(role=Role.ENGINEER.value).order_by(User.id).all()
    assigned = {}
    for t in Ticket.query.filter(Ticket.assignee_id.in_([e.id for e in engineers])).all():
        assigned.setdefault(t.assignee_id, []).append(t)

    rows = []
    for engineer in engineers:
        tickets = assigned.get(engineer.id, [])
        total = len(tickets)
        active = sum(1 for t in tickets if t.status not in FINISHED_STATUSES)
        resolved = sum(1 for t in tickets if t.status == TicketStatus.RESOLVED.value)
        closed = sum(1 for t in tickets if t.status == TicketStatus.CLOSED.value)
        rows.append({
            'engineer_id': engineer.id,
            'engineer_name': engineer.full_name,
            'engineer_email': engineer.email,
            'total_assigned_tickets': total,
            'active_tickets': active,
            'resolved_tickets': resolved,
            'closed_tickets': closed,
            'average_resolution_time_hours': average_resolution_hours(tickets),
            'resolution_rate': round2(resolution_rate(total, resolved, closed)),
            'is_active': engineer.is_active,
        })
    rows.sort(key=lambda r: -r['total_assigned_tickets'])
    return rows


def system_health():
    stats = compute_dashboard_stats()
    warnings = []
    if stats['unassigned_tickets'] > 0:
        warnings.append(f"There are {stats['unassigned_tickets']} unassigned tickets")
    if stats['total_engineers'] > stats['active_engineers']:
        warnings.append("Some engineers are inactive")
    if stats['average_tickets_per_engineer'] > HIGH_LOAD_THRESHOLD:
        warnings.append(f"High ticket load per engineer: {stats['average_tickets_per_engineer']:.1f}")
    if stats['average_resolution_time_hours'] > SLOW_RESOLUTION_HOURS:
        warnings.append(f"Average resolution time is high: {stats['average_resolution_time_hours']:.1f} hours")

    status = 'HEALTHY' if not warnings else 'WARNING'
    if warnings:
        current_app.logger.warning(f"System health {status}: {'; '.join(warnings)}")
    return {
        'status': status,
        'warnings': warnings,
        'total_users': stats['total_users'],
        'active_users': stats['active_users'],
        'total_tickets': stats['total_tickets'],
        'unassigned_tickets': stats['unassigned_tickets'],
        'active_engineers': stats['active_engineers'],
        'average_tickets_per_engineer': stats['average_tickets_per_engineer'],
        'average_resolution_time_hours': stats['average_resolution_time_hours'],
    }
