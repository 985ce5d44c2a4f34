"""Page-number pagination envelope for list endpoints."""
from typing import Callable, Optional

from django.core.paginator import Paginator

PAGE_SIZE = 10


def paginate_queryset(queryset, page: Optional[int], serializer: Callable, per_page: int = PAGE_SIZE) -> dict:
    """
    Slice ``queryset`` into a fixed-size page.

    Out-of-range pages clamp to the last page (or the first when empty).

    Returns:
        ``{data, current_page, last_page, per_page, total}``
    """
    paginator = Paginator(queryset, per_page)
    page_obj = paginator.get_page(page or 1)
    return {
        'data': [serializer(obj) for obj in page_obj.object_list],
        'current_page': page_obj.number,
        'last_page': paginator.num_pages,
        'per_page': per_page,
        'total': paginator.count,
    }
