"""
Optimistic — cart and wishlist changes on screen before the server answers.

Key concepts:
- APPLIED before the request: the UI renders the tentative item at once
- Server ok → its collection replaces local state (no merging)
- Server error → snapshot restored, one error notification
- Settle → cache marked stale, re-fetched once nothing is in flight

Level 4: shopsync.Storefront
Level 3: shopsync.optimistic
Level 2: shopsync.store, shopsync.notify
"""

from shopsync import Settings, Storefront
from shopsync import notify as N
from shopsync.domain import CollectionKind
from examples._infra import MUG, SHIRT, FakeShop, SlowImages, banner, run, show


async def main() -> None:
    banner("Optimistic: Cart & Wishlist")

    toasts = N.NotificationLog()
    shop = Storefront.build(
        Settings(),
        products=SlowImages(),
        cart_backend=FakeShop(CollectionKind.CART),
        wishlist_backend=FakeShop(CollectionKind.WISHLIST),
        notifier=N.FanoutNotifier(toasts, N.LoggingNotifier()),
    )
    await shop.cart.initialize()

    print("\n1. Add an in-stock shirt (watch the tentative render):")
    unsubscribe = shop.cart.subscribe(lambda s: show("render", s.items))
    result = await shop.cart.add(SHIRT.id, "v-m", 1, product=SHIRT)
    unsubscribe()
    show("final", shop.cart.state.items)
    print(f"   toasts: {[n.title for n in toasts.drain()]}")

    print("\n2. Add an out-of-stock mug (rolled back):")
    await shop.cart.add(MUG.id, "v-one", 1, product=MUG)
    show("final", shop.cart.state.items)
    print(f"   toasts: {[(n.title, n.description) for n in toasts.drain()]}")

    print("\n3. Update quantity, then clear:")
    [item] = shop.cart.state.items
    await shop.cart.update_quantity(item.id, 2)
    show("after update", shop.cart.state.items)
    await shop.cart.clear()
    show("after clear", shop.cart.state.items)

    print("\n4. Wishlist items have no quantity:")
    await shop.wishlist.add(MUG.id, "v-one", product=MUG)
    show("wishlist", shop.wishlist.state.items)

    print("\n5. Logout forgets local state:")
    await shop.logout()
    print(f"   cart loaded={shop.cart.state.loaded} wishlist loaded={shop.wishlist.state.loaded}")

    print(f"\nResult of first add: {result}")
    print("\nDone!")


if __name__ == "__main__":
    run(main)
