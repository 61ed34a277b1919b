from aiogram import Router


def make_root_router() -> Router:
    from .basic import basic_router, fallback_router
    from .stats import stats_router
    from .webapp import webapp_router

    router = Router()
    router.include_router(basic_router)
    router.include_router(stats_router)
    router.include_router(webapp_router)
    router.include_router(fallback_router)
    return router
