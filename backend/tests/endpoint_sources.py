"""Source text of throwaway endpoint modules written by the bootstrap tests."""

TIME_MODULE = """
    from apidex.services.handler_boundary import handler_boundary

    ENDPOINTS = [
        {"path": "/api/time", "method": "GET", "description": "time"},
    ]

    @handler_boundary
    async def get_time():
        return {"status": "success", "source": "time"}

    def register(ctx):
        ctx.dispatcher.register_route("GET", "/api/time", get_time)
"""

PING_MODULE = """
    from apidex.services.handler_boundary import handler_boundary

    ENDPOINTS = [
        {"path": "/api/ping", "method": "GET", "description": "ping"},
    ]

    @handler_boundary
    def ping():
        return {"status": "success", "source": "ping"}

    def register(ctx):
        ctx.dispatcher.register_route("GET", "/api/ping", ping)
"""
