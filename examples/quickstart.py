"""quickstart — minimal teleroute bot: menu, a choice, free text and a list.

    BOT_TOKEN=... uv run python examples/quickstart.py
"""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog

from teleroute.config import RouterOptions
from teleroute.errors import UserFacingError
from teleroute.router import InlineRouter
from teleroute.routes import Button, ButtonArgs, RenderMode, RouteArgs, RouteNode, View, columns, pager, route


@dataclass
class Orders:
    size: str = "medium"
    placed: list[str] = field(default_factory=lambda: list[str]())


# ── Menu ─────────────────────────────────────────────────────────────────────

@route("menu", command="start", description="Open the menu", order=1)
def menu(args: RouteArgs[Orders, None]) -> View:
    return View(
        f"Pizza bot. Size: {args.actions.size}",
        [
            [args.button("Size", size), args.button("Order", toppings)],
            args.button("My orders", orders, (1,)),
        ],
    )


# ── Size: inline actions edit the current screen ─────────────────────────────

def _pick(value: str):
    async def pick(args: ButtonArgs[Orders]) -> None:
        args.actions.size = value
        await args.navigate_back()

    return pick


@route("size")
def size(args: RouteArgs[Orders, None]) -> View:
    choices = [Button(s.title(), f"size:{s}", action=_pick(s)) for s in ("small", "medium", "large")]
    return View("Pick a size:", columns(choices, 3))


# ── Toppings: free text ──────────────────────────────────────────────────────

async def save_order(args: RouteArgs[Orders, None]) -> View:
    toppings = args.text or ""
    if not toppings:
        raise UserFacingError("Send at least one topping")
    args.actions.placed.append(f"{args.actions.size} pizza with {toppings}")
    return View(f"Order placed: {args.actions.placed[-1]}")


@route("toppings", on_text=save_order)
def toppings(args: RouteArgs[Orders, None]) -> None:
    return None


# ── Orders: paged list, details referenced by token ──────────────────────────

PAGE_SIZE = 3


@route("orders", command="orders", description="View orders", order=2)
async def orders(args: RouteArgs[Orders, int]) -> View:
    page = int(args.callback.args[0]) if args.callback and args.callback.args else (args.params or 1)
    placed = args.actions.placed
    pages = max(1, -(-len(placed) // PAGE_SIZE))
    chunk = placed[(page - 1) * PAGE_SIZE:page * PAGE_SIZE]
    items = [await args.token_button(text, "order", text) for text in chunk]
    nav = pager(page, pages, args.button("‹", orders, (page - 1,)), args.button("›", orders, (page + 1,)))
    return View(f"Orders, page {page}/{pages}" if placed else "No orders yet", [*items, nav])


@route("order")
def order(args: RouteArgs[Orders, str]) -> View:
    return View(f"Order: {args.params}")


# ── Run ──────────────────────────────────────────────────────────────────────

router = InlineRouter[Orders](
    [
        RouteNode(menu, children=[
            RouteNode(size, has_back=True),
            RouteNode(toppings, has_back=True),
            RouteNode(orders, has_back=True, children=[order]),
        ]),
    ],
    RouterOptions(render_mode=RenderMode.SMART, max_messages=5),
)

if __name__ == "__main__":
    import os

    from telegrinder import API, Telegrinder, Token

    from teleroute.binding import TelegrinderTransport

    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(20),
    )
    token = os.environ.get("BOT_TOKEN", "")
    if not token:
        print("Set BOT_TOKEN=... to run")
    else:
        api = API(Token(token))
        bot = Telegrinder(api)
        running = router.run(TelegrinderTransport(api), Orders())
        running.attach(bot.dispatch)
        bot.loop_wrapper.add_task(running.register_commands())
        bot.run_forever()
