# mcp_server.py
import asyncio
import logging
from typing import Optional

import httpx
import uvicorn
from mcp.server.fastmcp import FastMCP

import config

# FastAPI app factory (main.py must be importable from the same folder)
import main as main_app_module  # noqa: E402

API_BASE = f"http://localhost:{config.API_PORT}"  # FastAPI address used by bridge

# create MCP server (bridge)
mcp = FastMCP("StudyMatch MCP Bridge")


# helper to call the HTTP endpoints
async def call_api(method: str, endpoint: str, json: Optional[dict] = None, params: Optional[dict] = None):
    url = f"{API_BASE}{endpoint}"
    async with httpx.AsyncClient(timeout=10.0) as client:
        if method.lower() == "post":
            resp = await client.post(url, json=json)
        elif method.lower() == "get":
            resp = await client.get(url, params=params)
        else:
            raise ValueError("unsupported method")
    try:
        return resp.json()
    except ValueError:
        return {"status_code": resp.status_code, "text": resp.text}


def _split_courses(courses: str) -> list:
    return [c.strip() for c in courses.split(",") if c.strip()]


# MCP tools that proxy to HTTP endpoints
@mcp.tool()
async def register_user(name: str, courses: str, preferred_time: str, learning_style: str) -> dict:
    """Register a learner. `courses` is a comma-separated list, e.g. "CS101, MATH200"."""
    payload = {
        "name": name,
        "courses": _split_courses(courses),
        "preferred_time": preferred_time,
        "learning_style": learning_style,
    }
    return await call_api("post", "/users", json=payload)


@mcp.tool()
async def find_matches(user_name: str) -> dict:
    """Users sharing a course, preferred time and learning style with `user_name`."""
    return await call_api("get", f"/users/{user_name}/matches")


@mcp.tool()
async def view_group(user_name: str) -> dict:
    return await call_api("get", f"/users/{user_name}/group")


@mcp.tool()
async def list_groups() -> dict:
    return await call_api("get", "/groups")


@mcp.tool()
async def create_group(group_name: str, user_name: str) -> dict:
    return await call_api("post", "/groups", json={"group_name": group_name, "user_name": user_name})


@mcp.tool()
async def join_group(group_name: str, user_name: str) -> dict:
    return await call_api("post", "/groups/join", json={"group_name": group_name, "user_name": user_name})


@mcp.tool()
async def switch_group(group_name: str, user_name: str) -> dict:
    """Leave the current group (if any) and join `group_name`."""
    return await call_api("post", "/groups/switch", json={"group_name": group_name, "user_name": user_name})


@mcp.tool()
async def leave_group(group_name: str, user_name: str) -> dict:
    return await call_api("post", "/groups/leave", json={"group_name": group_name, "user_name": user_name})


# Run uvicorn programmatically + MCP server (stdio)
async def run_uvicorn():
    """Run the FastAPI app via uvicorn programmatically so both run in same process."""
    app = main_app_module.create_app()
    uv_config = uvicorn.Config(app, host=config.API_HOST, port=config.API_PORT, log_level=config.LOG_LEVEL.lower())
    server = uvicorn.Server(uv_config)
    await server.serve()  # returns when server stops


async def main():
    logging.basicConfig(level=config.LOG_LEVEL)
    uvicorn_task = asyncio.create_task(run_uvicorn())
    # give uvicorn a moment to start before MCP begins handling calls
    await asyncio.sleep(0.5)

    # blocks until the stdio client disconnects
    await mcp.run_stdio_async()

    uvicorn_task.cancel()
    try:
        await uvicorn_task
    except asyncio.CancelledError:
        pass


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("Shutting down.")
