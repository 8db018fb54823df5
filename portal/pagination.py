"""
Постраничная выдача: параметры page/size/sort и тело ответа
"""
import math

from flask import request

from portal.errors import BadRequestError

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


class PageRequest:

    def __init__(self, page=0, size=DEFAULT_PAGE_SIZE, sort_field='created_at', direction='desc'):
        self.page = page
        self.size = size
        self.sort_field = sort_field
        self.direction = direction

    @classmethod
    def from_request(cls, allowed_sorts, default_sort='created_at', default_direction='desc'):
        """Разбор ?page=&size=&sort=field,dir; поле сортировки из белого списка"""
        try:
            page = int(request.args.get('page', 0))
            size = int(request.args.get('size', DEFAULT_PAGE_SIZE))
        except ValueError:
            raise BadRequestError("page and size must be integers")
        if page < 0:
            raise BadRequestError("page must not be negative")
        if size < 1:
            raise BadRequestError("size must be positive")
        size = min(size, MAX_PAGE_SIZE)

        sort_field, direction = default_sort, default_direction
        sort = request.args.get('sort')
        if sort:
            parts = [p.strip() for p in sort.split(',')]
            sort_field = parts[0]
            if len(parts) > 1 and parts[1]:
                direction = parts[1].lower()
        # sortBy/direction для совместимости со старыми клиентами
        sort_field = request.args.get('sortBy', sort_field)
        direction = request.args.get('direction', direction).lower()

        if sort_field not in allowed_sorts:
            raise BadRequestError(f"Unsupported sort field: {sort_field}")
        if direction not in ('asc', 'desc'):
            raise BadRequestError(f"Unsupported sort direction: {direction}")
        return cls(page, size, sort_field, direction)

    def apply(self, query, model):
        column = getattr(model, self.sort_field)
        order = column.asc() if self.direction == 'asc' else column.desc()
        return query.order_by(order, model.id.desc() if self.direction == 'desc' else model.id.asc())


def paginate(query, model, page_request, serializer):
    """Выполняет запрос и собирает страницу"""
    total = query.order_by(None).count()
    items = (page_request.apply(query, model)
             .offset(page_request.page * page_request.size)
             .limit(page_request.size)
             .all())
    return page_body([serializer(i) for i in items], page_request.page, page_request.size, total)


def page_body(content, page, size, total):
    total_pages = math.ceil(total / size) if size else 0
    return {
        'content': content,
        'page': page,
        'size': size,
        'total_elements': total,
        'total_pages': total_pages,
        'first': page == 0,
        'last': page >= total_pages - 1,
        'has_next': page < total_pages - 1,
        'has_previous': page > 0,
    }
