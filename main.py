"""
Voice Shop - voice shopping assistant
Entry point with a small in-memory demo storefront
"""
import logging
import sys
from typing import Any, Dict, List, Optional

from colorama import init, Fore, Style

init(autoreset=True)

from voiceshop import CapabilityRegistry, Page, SessionContext
from voiceshop.config_loader import ConfigLoader
from voiceshop.errors import SpeechInputError

DEMO_CATALOG: List[Dict[str, Any]] = [
    {"id": "p1", "name": "Air Runner Sneakers", "price": 89.99, "rating": 4.5, "category": "shoes",
     "sizes": ["8", "9", "10"], "colors": ["white", "black"], "voice_keywords": ["sneakers", "runners"]},
    {"id": "p2", "name": "Trail Hiking Boots", "price": 129.0, "rating": 4.7, "category": "shoes",
     "sizes": ["9", "10", "11"], "colors": ["brown"], "voice_keywords": ["boots", "hiking"]},
    {"id": "p3", "name": "Classic Cotton Shirt", "price": 29.5, "rating": 4.1, "category": "clothing",
     "sizes": ["S", "M", "L"], "colors": ["blue", "white"], "voice_keywords": ["shirt"]},
    {"id": "p4", "name": "Slim Fit Jeans", "price": 49.0, "rating": 4.3, "category": "clothing",
     "sizes": ["M", "L", "XL"], "colors": ["navy", "black"], "voice_keywords": ["jeans", "denim"]},
    {"id": "p5", "name": "Nova Smartphone", "price": 699.0, "rating": 4.8, "category": "electronics",
     "sizes": [], "colors": ["silver", "black"], "voice_keywords": ["phone", "smartphone"]},
    {"id": "p6", "name": "Wireless Headphones", "price": 149.0, "rating": 4.4, "category": "electronics",
     "sizes": [], "colors": ["black", "white"], "voice_keywords": ["headphones"]},
    {"id": "p7", "name": "Yoga Mat", "price": 25.0, "rating": 4.6, "category": "fitness",
     "sizes": [], "colors": ["purple", "green"], "voice_keywords": ["mat", "yoga"]},
]

DEMO_ADDRESSES = [{"id": "addr-home", "name": "Home"}, {"id": "addr-work", "name": "Work"}]
DEMO_CARDS = [{"id": "card-visa", "name": "Visa", "last_four": "4242"},
              {"id": "card-mc", "name": "Mastercard", "last_four": "5555"}]


class DemoStorefront:
    """In-memory host application: catalog, cart and checkout"""

    def __init__(self, catalog: Optional[List[Dict[str, Any]]] = None):
        self.catalog = catalog or DEMO_CATALOG
        self.context = SessionContext()
        self.cart: List[Dict[str, Any]] = []
        self.address_id: Optional[str] = None
        self.card_id: Optional[str] = None
        self.context.set_products(self.catalog)
        self.context.set_page(Page.PRODUCTS)

    def register(self, registry: CapabilityRegistry):
        registry.register("navigate_home", self.navigate_home)
        registry.register("view_cart", self.view_cart)
        registry.register("goto_checkout", self.goto_checkout)
        registry.register("browse_products", self.browse_products)
        registry.register("add_to_cart", self.add_to_cart)
        registry.register("select_address", self.select_address)
        registry.register("select_card", self.select_card)
        registry.register("submit_order", self.submit_order)

    def catalog_lookup(self, query: str) -> List[Dict[str, Any]]:
        return list(self.catalog)

    def navigate_home(self):
        self.context.set_page(Page.HOME)
        print(f"{Fore.BLUE}  [page] home")

    def view_cart(self):
        self.context.set_page(Page.CART)
        print(f"{Fore.BLUE}  [page] cart: {[item['name'] for item in self.cart] or 'empty'}")

    def goto_checkout(self):
        if not self.cart:
            raise ValueError("cart is empty")
        self.context.set_page(Page.CHECKOUT, on_checkout=True)
        self.context.set_saved_options(DEMO_ADDRESSES, DEMO_CARDS)
        print(f"{Fore.BLUE}  [page] checkout, total ${sum(item['price'] for item in self.cart):.2f}")

    def browse_products(self, category: str = ""):
        products = [p for p in self.catalog if not category or p["category"] == category]
        self.context.set_products(products, category=category)
        self.context.set_page(Page.PRODUCTS)
        print(f"{Fore.BLUE}  [page] products{f' ({category})' if category else ''}:")
        for index, product in enumerate(products, 1):
            print(f"{Fore.BLUE}    {index}. {product['name']} ${product['price']} ({product['rating']}★)")

    def add_to_cart(self, product_id: str):
        product = next((p for p in self.catalog if p["id"] == product_id), None)
        if product is None:
            raise KeyError(product_id)
        self.cart.append(product)
        print(f"{Fore.BLUE}  [cart] + {product['name']} ({len(self.cart)} items)")

    def select_address(self, identifier: str):
        self.address_id = identifier
        print(f"{Fore.BLUE}  [checkout] address {identifier}")

    def select_card(self, identifier: str):
        self.card_id = identifier
        print(f"{Fore.BLUE}  [checkout] card {identifier}")

    def submit_order(self):
        if not self.cart:
            raise ValueError("cart is empty")
        if not self.address_id or not self.card_id:
            raise ValueError("address and card must be selected first")
        print(f"{Fore.BLUE}  [order] placed {len(self.cart)} items")
        self.cart = []
        self.context.set_page(Page.ORDERS)


class VoiceAssistant:
    """Main voice assistant class"""

    def __init__(self, config_path: str = "config/config.json", user_id: Optional[str] = None, voice: bool = False):
        print(f"{Fore.CYAN}{'='*60}")
        print(f"{Fore.CYAN}Voice Shop - Voice Shopping Assistant")
        print(f"{Fore.CYAN}{'='*60}\n")

        print(f"{Fore.YELLOW}Loading configuration...")
        try:
            self.config = ConfigLoader(config_path)
            print(f"{Fore.GREEN}✓ Configuration loaded")
        except (FileNotFoundError, ValueError) as e:
            print(f"{Fore.RED}✗ Configuration error: {e}")
            sys.exit(1)

        logging.basicConfig(
            level=getattr(logging, str(self.config.get("log_level", "INFO")).upper(), logging.INFO),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

        self.user_id = user_id or self.config.get("user_id")
        self.store = DemoStorefront()
        registry = CapabilityRegistry()
        self.store.register(registry)

        print(f"{Fore.YELLOW}Initializing engine...")
        try:
            self.engine = self.config.build_engine(
                registry=registry,
                context=self.store.context,
                catalog_lookup=self.store.catalog_lookup,
                voice=voice,
            )
            print(f"{Fore.GREEN}✓ Engine ready ({self.engine.classifier.name} classifier)")
        except Exception as e:
            print(f"{Fore.RED}✗ Engine initialization failed: {e}")
            sys.exit(1)

        if not self.user_id:
            print(f"{Fore.YELLOW}Not signed in: shopping commands will ask you to sign in (use --user ID)")

        print(f"\n{Fore.GREEN}{'='*60}")
        print(f"{Fore.GREEN}Assistant is ready!")
        print(f"{Fore.GREEN}{'='*60}\n")

    def process_command(self, command_text: str):
        print(f"{Fore.CYAN}► Command: {command_text}")
        result = self.engine.handle_utterance(command_text, user_id=self.user_id)

        color = Fore.GREEN if result.success else Fore.RED
        print(f"{Fore.MAGENTA}► Intent: {result.intent.value} {result.params or ''}")
        if result.capability:
            status = "done" if result.dispatched else "not run"
            print(f"{Fore.YELLOW}► Action: {result.capability} ({status})")
        print(f"{color}► Assistant: {result.response}")
        return result

    def show_history(self):
        entries = self.engine.command_log.entries()
        if not entries:
            print(f"{Fore.YELLOW}No commands yet")
        for entry in entries:
            print(f"{Fore.WHITE}  {entry.timestamp:%H:%M:%S} {entry.utterance!r} -> {entry.intent}")

    def run_interactive(self):
        """Text input mode"""
        print(f"{Fore.CYAN}Mode: Text input")
        print(f"{Fore.YELLOW}Type a command, 'history', or 'exit' to quit\n")

        while True:
            try:
                command = input(f"{Fore.GREEN}You: {Style.RESET_ALL}")

                if command.lower() in ['exit', 'quit']:
                    print(f"{Fore.CYAN}Goodbye!")
                    break
                if command.lower() == 'history':
                    self.show_history()
                    continue

                if command.strip():
                    self.process_command(command)
                    print()

            except (KeyboardInterrupt, EOFError):
                self.engine.cancel()
                print(f"\n{Fore.CYAN}Goodbye!")
                break

    def run_voice(self):
        """Push-to-talk voice mode"""
        print(f"{Fore.CYAN}Mode: Voice input")
        print(f"{Fore.YELLOW}Press Enter to record a command, or type 'exit'\n")

        while True:
            try:
                user_input = input(f"{Fore.GREEN}Press Enter to record (or 'exit'): {Style.RESET_ALL}")

                if user_input.lower() in ['exit', 'quit']:
                    print(f"{Fore.CYAN}Goodbye!")
                    break

                print(f"{Fore.YELLOW}Listening...")
                try:
                    result = self.engine.listen_and_handle(user_id=self.user_id)
                except SpeechInputError as e:
                    print(f"{Fore.RED}{e}")
                    continue

                print(f"{Fore.CYAN}► Heard: {result.utterance}")
                print(f"{Fore.MAGENTA}► Intent: {result.intent.value}")
                print(f"{Fore.GREEN}► Assistant: {result.response}\n")

            except (KeyboardInterrupt, EOFError):
                self.engine.cancel()
                print(f"\n{Fore.CYAN}Goodbye!")
                break


def print_help():
    print("Voice Shop - Voice Shopping Assistant")
    print("\nUsage:")
    print("  python main.py                    - Text mode")
    print("  python main.py --voice            - Voice mode (push to talk)")
    print("  python main.py --user ID          - Act as a signed-in user")
    print("  python main.py --config PATH      - Use another config file")
    print("  python main.py --help             - This help")
    print("\nExamples:")
    print("  python main.py --user demo")
    print("  python main.py --voice --user demo --config config/config.json")


def main(argv: Optional[List[str]] = None):
    args = list(sys.argv[1:] if argv is None else argv)
    mode = "text"
    user_id = None
    config_path = "config/config.json"

    while args:
        arg = args.pop(0)
        if arg in ["--voice", "-v"]:
            mode = "voice"
        elif arg in ["--user", "-u", "--config", "-c"]:
            if not args:
                print(f"{Fore.RED}Error: {arg} requires a value")
                sys.exit(1)
            value = args.pop(0)
            if arg in ["--user", "-u"]:
                user_id = value
            else:
                config_path = value
        elif arg in ["--help", "-h"]:
            print_help()
            return
        else:
            print(f"{Fore.RED}Unknown argument: {arg}")
            print_help()
            sys.exit(1)

    assistant = VoiceAssistant(config_path=config_path, user_id=user_id, voice=mode == "voice")
    if mode == "voice":
        assistant.run_voice()
    else:
        assistant.run_interactive()


if __name__ == "__main__":
    main()
