# ===============================================================================
# API PAGINATION CLASSES 📄
# ===============================================================================

from typing import Any

from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class AdminResultsSetPagination(PageNumberPagination):
    """
    Back-office pagination driven by ``page`` and ``limit``.

    Response shape: {success, data, pagination: {page, limit, total, pages}}
    """

    page_size = 10
    page_size_query_param = "limit"
    max_page_size = 100

    def get_paginated_response(self, data: Any) -> Response:
        total = self.page.paginator.count
        limit = self.page.paginator.per_page
        return Response({
            "success": True,
            "data": data,
            "pagination": {
                "page": self.page.number,
                "limit": limit,
                "total": total,
                "pages": self.page.paginator.num_pages if total else 0,
            },
        })
