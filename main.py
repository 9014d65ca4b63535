import logging
import sys

from PyQt5.QtWidgets import QApplication

from config import Settings
from controller import CartController
from receipt import ReceiptGenerator
from services import CatalogService, TransactionService
from view import POSWindow


def build_controller(settings):
    catalog = CatalogService(settings)
    # both adapters talk to the same backend; share the connection pool
    transactions = TransactionService(settings, session=catalog.session)
    return CartController(catalog, transactions, settings)


def main():
    settings = Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger(__name__).info("using backend %s", settings.api_base_url)

    app = QApplication(sys.argv)
    controller = build_controller(settings)
    window = POSWindow(controller, ReceiptGenerator(settings))
    window.show()

    sys.exit(app.exec_())


if __name__ == "__main__":
    main()
