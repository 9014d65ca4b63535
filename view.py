import logging
import os

from PyQt5.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QLabel, QPushButton, QLineEdit,
    QHeaderView, QTableWidget, QTableWidgetItem, QDialog, QApplication,
)
from PyQt5.QtCore import Qt
from PyQt5.QtGui import QPixmap, QFont

from controller import MSG_NOT_FOUND, is_error_message
from models import CODE_LENGTH

logger = logging.getLogger(__name__)

ERROR_STYLE = "background-color: #FDECEA; color: #B71C1C; padding: 8px; border-radius: 4px;"
INFO_STYLE = "background-color: #E8F5E9; color: #1B5E20; padding: 8px; border-radius: 4px;"


class POSWindow(QWidget):
    def __init__(self, controller, receipts=None):
        super().__init__()
        self.setObjectName("POSWindow")
        self.setWindowTitle("POS")
        self.resize(1000, 640)
        self.controller = controller
        self.receipts = receipts

        main_layout = QHBoxLayout()

        # Left side: code entry + product display
        left = QVBoxLayout()

        self.input_code = QLineEdit()
        self.input_code.setPlaceholderText("13-digit product code")
        self.input_code.setMaxLength(CODE_LENGTH)
        self.input_code.setMinimumHeight(44)
        self.input_code.textEdited.connect(controller.set_code_input)
        self.input_code.returnPressed.connect(self._on_lookup)

        self.btn_lookup = QPushButton("Read")
        self.btn_lookup.clicked.connect(self._on_lookup)

        self.lbl_status = QLabel("")
        self.lbl_status.setWordWrap(True)

        self.lbl_name = QLabel()
        self.lbl_name.setObjectName("ProductName")
        self.lbl_name.setFont(QFont("Segoe UI", 14, QFont.Bold))
        self.lbl_price = QLabel()
        self.lbl_price.setObjectName("ProductPrice")
        self.lbl_price.setFont(QFont("Segoe UI", 16, QFont.Bold))

        self.btn_add = QPushButton("Add to list")
        self.btn_add.clicked.connect(controller.add_to_cart)

        left.addWidget(QLabel("Code"))
        left.addWidget(self.input_code)
        left.addWidget(self.btn_lookup)
        left.addWidget(self.lbl_status)
        left.addSpacing(16)
        left.addWidget(QLabel("Name"))
        left.addWidget(self.lbl_name)
        left.addWidget(QLabel("Unit price"))
        left.addWidget(self.lbl_price)
        left.addWidget(self.btn_add)
        left.addStretch(1)

        # Right side: cart
        right = QVBoxLayout()
        lbl_cart = QLabel("Purchase list")
        lbl_cart.setFont(QFont("Segoe UI", 18, QFont.Bold))

        self.cart_table = QTableWidget()
        self.cart_table.setColumnCount(5)
        self.cart_table.setHorizontalHeaderLabels(["Item", "Qty", "Price", "Amount", ""])
        self.cart_table.horizontalHeader().setSectionResizeMode(0, QHeaderView.Stretch)
        for col in (1, 2, 3):
            self.cart_table.horizontalHeader().setSectionResizeMode(col, QHeaderView.ResizeToContents)
        self.cart_table.horizontalHeader().setSectionResizeMode(4, QHeaderView.Fixed)
        self.cart_table.setColumnWidth(4, 60)
        self.cart_table.verticalHeader().setVisible(False)

        self.lbl_subtotal = QLabel()
        self.lbl_tax = QLabel()
        self.lbl_total = QLabel()
        self.lbl_total.setStyleSheet("font-size: 18pt; font-weight: bold; color: #1E40AF;")

        self.btn_checkout = QPushButton("Purchase")
        self.btn_checkout.setObjectName("CheckoutBtn")
        self.btn_checkout.clicked.connect(self._on_checkout)

        right.addWidget(lbl_cart)
        right.addWidget(self.cart_table)
        right.addWidget(self.lbl_subtotal)
        right.addWidget(self.lbl_tax)
        right.addWidget(self.lbl_total)
        right.addWidget(self.btn_checkout)

        main_layout.addLayout(left, 1)
        main_layout.addLayout(right, 1)
        self.setLayout(main_layout)

        controller.state_changed.connect(self.render)
        controller.receipt_ready.connect(self.show_receipt)
        self.render()

    def _on_lookup(self):
        self.controller.set_code_input(self.input_code.text())
        self.controller.lookup_product()

    def _on_checkout(self):
        self.controller.checkout()

    def render(self):
        c = self.controller
        busy = c.busy

        if self.input_code.text() != c.code_input:
            self.input_code.setText(c.code_input)

        for w in (self.input_code, self.btn_lookup, self.btn_checkout):
            w.setEnabled(not busy)
        self.btn_add.setEnabled(not busy and c.pending_product is not None)
        self.btn_lookup.setText("Loading..." if busy else "Read")

        message = c.status_message
        self.lbl_status.setText(message)
        self.lbl_status.setVisible(bool(message))
        self.lbl_status.setStyleSheet(ERROR_STYLE if is_error_message(message) else INFO_STYLE)

        product = c.pending_product
        if product is not None:
            self.lbl_name.setText(product.name)
            self.lbl_name.setStyleSheet("")
            self.lbl_price.setText(f"{product.unit_price:,}")
        elif message == MSG_NOT_FOUND:
            self.lbl_name.setText(MSG_NOT_FOUND)
            self.lbl_name.setStyleSheet("color: #B71C1C;")
            self.lbl_price.setText("")
        else:
            self.lbl_name.setText("")
            self.lbl_name.setStyleSheet("")
            self.lbl_price.setText("")

        self.update_cart_display()

        if busy:
            # synchronous requests run on this thread; paint the disabled state first
            QApplication.processEvents()

    def update_cart_display(self):
        cart = self.controller.cart
        self.cart_table.setRowCount(0)
        self.cart_table.setRowCount(len(cart))

        for row, line in enumerate(cart):
            self.cart_table.setItem(row, 0, QTableWidgetItem(line.product.name))
            self.cart_table.setItem(row, 1, QTableWidgetItem(f"x{line.quantity}"))
            self.cart_table.setItem(row, 2, QTableWidgetItem(f"{line.product.unit_price:,}"))
            self.cart_table.setItem(row, 3, QTableWidgetItem(f"{line.line_total:,}"))

            btn_rem = QPushButton("x")
            btn_rem.setStyleSheet("background-color: #E74C3C; color: white;")
            btn_rem.setEnabled(not self.controller.busy)
            btn_rem.clicked.connect(lambda ch, i=row: self.controller.remove_from_cart(i))
            self.cart_table.setCellWidget(row, 4, btn_rem)

        totals = self.controller.totals()
        percent = self.controller.settings.tax_percent
        self.lbl_subtotal.setText(f"Subtotal: {totals['subtotal']:,}")
        self.lbl_tax.setText(f"Tax ({percent}%): {totals['tax']:,}")
        self.lbl_total.setText(f"Total: {totals['total']:,}")

    def show_receipt(self, receipt):
        png_path = None
        if self.receipts is not None:
            try:
                png_path = self.receipts.generate(receipt)
            except (OSError, ValueError):
                logger.exception("could not render receipt %s", receipt.number)
        dlg = ReceiptDialog(receipt, png_path, self.controller.settings.tax_percent, self)
        dlg.exec_()


class ReceiptDialog(QDialog):
    def __init__(self, receipt, png_path=None, tax_percent=10, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Purchase completed")
        self.setMinimumSize(420, 320)
        layout = QVBoxLayout()

        self.lbl_summary = QLabel(
            f"Subtotal: {receipt.subtotal:,}\n"
            f"Tax ({tax_percent}%): {receipt.tax:,}\n"
            f"Total: {receipt.total:,}"
        )
        self.lbl_summary.setStyleSheet("font-size: 14pt;")
        layout.addWidget(self.lbl_summary)

        if png_path and os.path.exists(png_path):
            lbl = QLabel()
            pm = QPixmap(png_path)
            if not pm.isNull():
                lbl.setPixmap(pm.scaled(380, 520, Qt.KeepAspectRatio, Qt.SmoothTransformation))
                layout.addWidget(lbl)

        btn_close = QPushButton("Close")
        btn_close.clicked.connect(self.accept)
        layout.addWidget(btn_close)
        self.setLayout(layout)
