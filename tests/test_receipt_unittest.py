import os
import shutil
import tempfile
import unittest
import sys
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from PIL import Image

from config import Settings
from models import Cart, Product, Receipt
from receipt import ReceiptGenerator


class ReceiptGeneratorTests(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        self.gen = ReceiptGenerator(Settings(receipts_dir=os.path.join(self.tmpdir, 'receipts')))

    def tearDown(self):
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def test_generate_creates_png(self):
        cart = Cart()
        cart.add(Product(1, '4901234567894', 'Tea', 150))
        cart.add(Product(1, '4901234567894', 'Tea', 150))
        cart.add(Product(2, '4901234567801', 'Water', 100))
        receipt = Receipt.from_cart(cart, 400, 40, transaction_id='T-1')

        png = self.gen.generate(receipt)
        self.assertTrue(png.endswith('T-1.png'))
        self.assertTrue(os.path.exists(png))
        with Image.open(png) as img:
            self.assertEqual(img.width, ReceiptGenerator.WIDTH)

    def test_unsafe_transaction_id_stays_in_receipts_dir(self):
        png = self.gen.generate(Receipt((), 0, 0, transaction_id='../../escape'))
        receipts_dir = os.path.join(self.tmpdir, 'receipts')
        self.assertEqual(os.path.dirname(png), receipts_dir)
        self.assertTrue(os.path.exists(png))
        self.assertFalse(os.path.exists(os.path.join(self.tmpdir, '..', 'escape.png')))

    def test_generate_empty_receipt(self):
        png = self.gen.generate(Receipt((), 0, 0))
        self.assertTrue(os.path.exists(png))


if __name__ == '__main__':
    unittest.main()
