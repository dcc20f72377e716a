from typing import Any, Iterable, Optional, Tuple
import backend.infra.supabase_client as supabase_client
import logging

logger = logging.getLogger(__name__)

# (opérateur PostgREST, colonne, valeur), ex: ("lt", "stock", 5)
Filter = Tuple[str, str, Any]

# module backend.admin.repository
def count_table_rows(table_name: str, filters: Optional[Iterable[Filter]] = None) -> int:
    """
    Compte les lignes d'une table via Supabase, filtres optionnels (eq, lt, gte, ...).
    Utilise count='exact' si disponible, sinon fallback sur len(data).
    """
    try:
        query = supabase_client.get_service_supabase().table(table_name).select("id", count="exact")
        for op, column, value in filters or ():
            query = getattr(query, op)(column, value)
        res = query.execute()
        if getattr(res, "count", None) is not None:
            return int(res.count)  # type: ignore
        return len(res.data or [])
    except Exception:
        logger.exception("admin.repository.count_table_rows failed table=%s", table_name)
        return 0
