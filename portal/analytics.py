"""
Аналитика по периодам: THIS_MONTH, LAST_MONTH, THIS_QUARTER, LAST_QUARTER.

Тикеты периода (по created_at) загружаются одним запросом, все метрики
считаются за один проход по списку в памяти.
"""
import calendar
import statistics
from collections import Counter
from datetime import date, datetime, time, timedelta

from flask import current_app

from portal.enums import (Period, TicketStatus, TicketPriority, TrendMetric, Trend, Role,
                          FINISHED_STATUSES)
from portal.models import Ticket, User
from portal.utils import utcnow, hours_between, round2
from portal.validation import parse_enum

WEEKDAYS = ('MONDAY', 'TUESDAY', 'WEDNESDAY', 'THURSDAY', 'FRIDAY', 'SATURDAY', 'SUNDAY')
PEAK_DAYS_LIMIT = 2
PEAK_HOURS_LIMIT = 3
FREQUENT_REQUESTER_THRESHOLD = 5


# ============================================================================
# ГРАНИЦЫ ПЕРИОДОВ
# ============================================================================

def _month_start(year, month):
    return datetime(year, month, 1)


def _month_end(year, month):
    last_day = calendar.monthrange(year, month)[1]
    return datetime.combine(date(year, month, last_day), time.max)


def _shift_month(year, month, delta):
    """Сдвиг (год, месяц) на delta месяцев с переходом через границу года"""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def _quarter_start_month(month):
    return ((month - 1) // 3) * 3 + 1


def period_bounds(period, now=None):
    """(start, end) периода; текущие периоды заканчиваются в now"""
    now = now or utcnow()
    period = parse_enum(Period, period, 'period')

    if period == Period.THIS_MONTH.value:
        return _month_start(now.year, now.month), now
    if period == Period.LAST_MONTH.value:
        y, m = _shift_month(now.year, now.month, -1)
        return _month_start(y, m), _month_end(y, m)
    q_month = _quarter_start_month(now.month)
    if period == Period.THIS_QUARTER.value:
        return _month_start(now.year, q_month), now
    # LAST_QUARTER
    y, m = _shift_month(now.year, q_month, -3)
    end_y, end_m = _shift_month(y, m, 2)
    return _month_start(y, m), _month_end(end_y, end_m)


def previous_period_bounds(period, now=None):
    """Период той же длины, непосредственно предшествующий period"""
    now = now or utcnow()
    period = parse_enum(Period, period, 'period')
    if period == Period.THIS_MONTH.value:
        return period_bounds(Period.LAST_MONTH.value, now)
    if period == Period.THIS_QUARTER.value:
        return period_bounds(Period.LAST_QUARTER.value, now)
    if period == Period.LAST_MONTH.value:
        y, m = _shift_month(now.year, now.month, -2)
        return _month_start(y, m), _month_end(y, m)
    y, m = _shift_month(now.year, _quarter_start_month(now.month), -6)
    end_y, end_m = _shift_month(y, m, 2)
    return _month_start(y, m), _month_end(end_y, end_m)


def _tickets_created_between(start, end):
    return Ticket.query.filter(Ticket.created_at >= start, Ticket.created_at <= end).all()


# ============================================================================
# МЕТРИКИ
# ============================================================================

def resolution_rate(total, resolved, closed):
    """(resolved + closed) / total * 100, 0 при пустом периоде"""
    if total == 0:
        return 0.0
    return (resolved + closed) / total * 100


def resolution_hours(tickets):
    return [
        hours_between(t.created_at, t.closed_at)
        for t in tickets
        if t.status in FINISHED_STATUSES and t.closed_at is not None
    ]


def change_percent(new_value, old_value):
    if old_value == 0:
        return 100.0 if new_value > 0 else 0.0
    return (new_value - old_value) / old_value * 100


def _top(counter, limit, order):
    ranked = sorted(counter.items(), key=lambda kv: (-kv[1], order(kv[0])))
    return [key for key, _ in ranked[:limit]]


def ticket_metrics(tickets):
    status_counts = Counter(t.status for t in tickets)
    priority_counts = Counter(t.priority for t in tickets)
    total = len(tickets)
    resolved = status_counts.get(TicketStatus.RESOLVED.value, 0)
    closed = status_counts.get(TicketStatus.CLOSED.value, 0)
    hours = resolution_hours(tickets)

    day_counts = Counter(WEEKDAYS[t.created_at.weekday()] for t in tickets)
    hour_counts = Counter(t.created_at.hour for t in tickets)

    return {
        'ticket_metrics': {
            'total_created': total,
            'total_resolved': resolved,
            'total_closed': closed,
            'resolution_rate': round2(resolution_rate(total, resolved, closed)),
            'avg_resolution_time_hours': round2(statistics.mean(hours)) if hours else 0.0,
            'median_resolution_time_hours': round2(statistics.median(hours)) if hours else 0.0,
        },
        'distribution_by_status': {s: status_counts.get(s, 0) for s in TicketStatus.values()},
        'distribution_by_priority': {p: priority_counts.get(p, 0) for p in TicketPriority.values()},
        'peak_days': _top(day_counts, PEAK_DAYS_LIMIT, WEEKDAYS.index),
        'peak_hours': _top(hour_counts, PEAK_HOURS_LIMIT, int),
    }


def ticket_analytics(period, now=None):
    period = parse_enum(Period, period, 'period')
    start, end = period_bounds(period, now)
    current_app.logger.info(f"Ticket analytics for {period}: {start} .. {end}")
    result = {
        'period': period,
        'start_date': start.date().isoformat(),
        'end_date': end.date().isoformat(),
    }
    result.update(ticket_metrics(_tickets_created_between(start, end)))
    return result


def engineer_metrics(engineer, tickets):
    total = len(tickets)
    resolved = sum(1 for t in tickets if t.status == TicketStatus.RESOLVED.value)
    closed = sum(1 for t in tickets if t.status == TicketStatus.CLOSED.value)
    hours = resolution_hours(tickets)
    return {
        'engineer_id': engineer.id,
        'engineer_name': engineer.full_name,
        'engineer_email': engineer.email,
        'total_tickets': total,
        'resolved_tickets': resolved,
        'closed_tickets': closed,
        'resolution_rate': round2(resolution_rate(total, resolved, closed)),
        'avg_resolution_time_hours': round2(statistics.mean(hours)) if hours else 0.0,
        'high_priority_count': sum(1 for t in tickets if t.priority == TicketPriority.HIGH.value),
        'critical_priority_count': sum(1 for t in tickets if t.priority == TicketPriority.CRITICAL.value),
        'is_active': engineer.is_active,
    }


def engineer_analytics(actor, period, now=None):
    """Админ видит всех инженеров, инженер только себя; ранжирование по resolution_rate"""
    period = parse_enum(Period, period, 'period')
    start, end = period_bounds(period, now)
    if actor.is_admin:
        engineers = User.query.filter_by(role=Role.ENGINEER.value).order_by(User.id).all()
    else:
        engineers = [actor]

    by_assignee = {}
    for t in _tickets_created_between(start, end):
        if t.assignee_id is not None:
            by_assignee.setdefault(t.assignee_id, []).append(t)

    rows = [engineer_metrics(e, by_assignee.get(e.id, [])) for e in engineers]
    rows.sort(key=lambda r: -r['resolution_rate'])
    for rank, row in enumerate(rows, start=1):
        row['rank'] = rank
    return {'period': period, 'engineers': rows}


def user_analytics(period, now=None):
    period = parse_enum(Period, period, 'period')
    start, end = period_bounds(period, now)
    prev_start, prev_end = previous_period_bounds(period, now)

    new_users = User.query.filter(User.created_at >= start, User.created_at <= end).count()
    active_users = User.query.filter(User.created_at <= end, User.is_active.is_(True)).count()

    tickets = _tickets_created_between(start, end)
    per_requester = Counter(t.requester_id for t in tickets)
    previous_requesters = {t.requester_id for t in _tickets_created_between(prev_start, prev_end)}
    retained = len(previous_requesters & set(per_requester))

    users_with_tickets = len(per_requester)
    return {
        'period': period,
        'new_users_count': new_users,
        'active_users_count': active_users,
        'total_users_with_tickets': users_with_tickets,
        'avg_tickets_per_user': round2(len(tickets) / users_with_tickets) if users_with_tickets else 0.0,
        'users_with_multiple_tickets': sum(1 for c in per_requester.values() if c >= FREQUENT_REQUESTER_THRESHOLD),
        'user_retention_rate': round2(retained / len(previous_requesters) * 100) if previous_requesters else 0.0,
    }


# ============================================================================
# ТРЕНДЫ
# ============================================================================

def _days(start, end):
    current = start.date()
    while current <= end.date():
        yield current
        current += timedelta(days=1)


def _tickets_trend(start, end):
    per_day = Counter(t.created_at.date() for t in _tickets_created_between(start, end))
    return [
        {'date': d.isoformat(), 'value': float(per_day.get(d, 0)), 'label': f"{per_day.get(d, 0)} tickets"}
        for d in _days(start, end)
    ]


def _resolution_time_trend(start, end):
    closed = (Ticket.query
              .filter(Ticket.status.in_(FINISHED_STATUSES),
                      Ticket.closed_at >= start, Ticket.closed_at <= end)
              .all())
    per_day = {}
    for t in closed:
        per_day.setdefault(t.closed_at.date(), []).append(hours_between(t.created_at, t.closed_at))
    data = []
    for d in _days(start, end):
        hours = per_day.get(d)
        value = round2(statistics.mean(hours)) if hours else 0.0
        data.append({'date': d.isoformat(), 'value': value, 'label': f"{value:.1f} hours"})
    return data


def _engineer_load_trend(start, end):
    open_tickets = (Ticket.query
                    .filter(Ticket.status.notin_(FINISHED_STATUSES), Ticket.created_at <= end)
                    .all())
    engineers = User.query.filter_by(role=Role.ENGINEER.value, is_active=True).count()
    data = []
    for d in _days(start, end):
        day_end = datetime.combine(d, time.max)
        active = sum(1 for t in open_tickets if t.created_at <= day_end)
        value = round2(active / engineers) if engineers else 0.0
        data.append({'date': d.isoformat(), 'value': value, 'label': f"{value:.1f} tickets/engineer"})
    return data


TREND_BUILDERS = {
    TrendMetric.TICKETS.value: _tickets_trend,
    TrendMetric.RESOLUTION_TIME.value: _resolution_time_trend,
    TrendMetric.ENGINEER_LOAD.value: _engineer_load_trend,
}


def trends(metric, period, now=None):
    """Одна точка на каждый день периода"""
    metric = parse_enum(TrendMetric, metric, 'metric')
    period = parse_enum(Period, period, 'period')
    start, end = period_bounds(period, now)
    return {'period': period, 'metric': metric, 'data': TREND_BUILDERS[metric](start, end)}


# ============================================================================
# СРАВНЕНИЕ ПЕРИОДОВ
# ============================================================================

def trend_label(change, lower_is_better):
    if change == 0:
        return Trend.SAME.value
    improved = change < 0 if lower_is_better else change > 0
    return Trend.BETTER.value if improved else Trend.WORSE.value


def _comparison(label, value1, value2, lower_is_better):
    change = change_percent(value2, value1)
    return {
        'label': label,
        'period1_value': float(value1),
        'period2_value': float(value2),
        'change_percent': round2(change),
        'trend': trend_label(change, lower_is_better),
    }


def compare(period1, period2, now=None):
    """Изменение метрик period2 относительно period1"""
    now = now or utcnow()
    m1 = ticket_analytics(period1, now)['ticket_metrics']
    m2 = ticket_analytics(period2, now)['ticket_metrics']
    return {
        'period1': parse_enum(Period, period1, 'period'),
        'period2': parse_enum(Period, period2, 'period'),
        'comparison': {
            'total_tickets': _comparison(
                "Total Tickets", m1['total_created'], m2['total_created'], lower_is_better=True),
            'resolution_rate': _comparison(
                "Resolution Rate (%)", m1['resolution_rate'], m2['resolution_rate'], lower_is_better=False),
            'avg_resolution_time': _comparison(
                "Avg Resolution Time (hours)", m1['avg_resolution_time_hours'], m2['avg_resolution_time_hours'],
                lower_is_better=True),
        },
    }
