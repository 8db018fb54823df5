"""
Группы инженеров. Участником может быть только ENGINEER или ADMIN.
"""
from flask import current_app
from sqlalchemy import func

from portal.core import get_db
from portal.errors import BadRequestError, NotFoundError
from portal.models import EngineerGroup, User
from portal.utils import iso
from portal.validation import Validator

db = get_db()


def group_to_dict(g):
    return {
        'id': g.id,
        'name': g.name,
        'description': g.description,
        'member_count': len(g.members),
        'member_ids': [m.id for m in g.members],
        'member_names': [m.full_name for m in g.members],
        'created_at': iso(g.created_at),
        'updated_at': iso(g.updated_at),
    }


def get_group(group_id):
    group = db.session.get(EngineerGroup, group_id)
    if not group:
        raise NotFoundError("EngineerGroup", "id", group_id)
    return group


def _check_name_free(name, exclude_id=None):
    query = EngineerGroup.query.filter(func.lower(EngineerGroup.name) == name.lower())
    if exclude_id is not None:
        query = query.filter(EngineerGroup.id != exclude_id)
    if query.first():
        raise BadRequestError(f"Engineer group with name '{name}' already exists")


def _eligible_member(user_id):
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError("User", "id", user_id)
    if not user.is_privileged:
        raise BadRequestError(f"User {user_id} is not an engineer or admin")
    return user


def list_groups():
    return [group_to_dict(g) for g in EngineerGroup.query.order_by(EngineerGroup.name.asc()).all()]


def create_group(actor, data):
    v = Validator(data)
    name = v.string('name', required=True, min_len=3, max_len=100)
    description = v.string('description', max_len=1000)
    member_ids = v.int_list('member_ids') or []
    v.check()

    _check_name_free(name)
    group = EngineerGroup(name=name, description=description)
    group.members = [_eligible_member(uid) for uid in dict.fromkeys(member_ids)]
    db.session.add(group)
    db.session.commit()
    current_app.logger.info(f"Engineer group {group.id} '{group.name}' created by admin {actor.id}")
    return group


def update_group(actor, group_id, data):
    group = get_group(group_id)
    v = Validator(data)
    name = v.string('name', min_len=3, max_len=100)
    description = v.string('description', max_len=1000)
    member_ids = v.int_list('member_ids')
    v.check()

    if name is not None and name != group.name:
        _check_name_free(name, exclude_id=group.id)
        group.name = name
    if 'description' in data:
        group.description = description
    if member_ids is not None:
        group.members = [_eligible_member(uid) for uid in dict.fromkeys(member_ids)]
    db.session.commit()
    return group


def add_member(actor, group_id, user_id):
    group = get_group(group_id)
    user = _eligible_member(user_id)
    if user in group.members:
        raise BadRequestError(f"User {user_id} is already a member of this group")
    group.members.append(user)
    db.session.commit()
    current_app.logger.info(f"User {user_id} added to engineer group {group.id} by admin {actor.id}")
    return group


def remove_member(actor, group_id, user_id):
    group = get_group(group_id)
    member = next((m for m in group.members if m.id == user_id), None)
    if member is None:
        raise BadRequestError(f"User {user_id} is not a member of this group")
    group.members.remove(member)
    db.session.commit()
    return group


def delete_group(actor, group_id):
    group = get_group(group_id)
    db.session.delete(group)
    db.session.commit()
    current_app.logger.info(f"Engineer group {group_id} deleted by admin {actor.id}")
