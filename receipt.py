import logging
import os

from PIL import Image, ImageDraw, ImageFont

logger = logging.getLogger(__name__)


class ReceiptGenerator:
    WIDTH = 560
    HEADER_H = 150
    LINE_H = 24
    FOOTER_H = 130

    def __init__(self, settings):
        self.settings = settings

    @staticmethod
    def _load_font(size):
        # Try common system fonts, fallback to default
        for f in ("DejaVuSans.ttf", "arial.ttf", "LiberationSans-Regular.ttf"):
            try:
                return ImageFont.truetype(f, size)
            except OSError:
                continue
        return ImageFont.load_default()

    @staticmethod
    def _text_width(draw, text, font):
        left, _, right, _ = draw.textbbox((0, 0), text, font=font)
        return right - left

    def generate(self, receipt):
        """Render the receipt to a PNG file and return its path."""
        os.makedirs(self.settings.receipts_dir, exist_ok=True)
        png_path = os.path.join(self.settings.receipts_dir, f"{receipt.number}.png")

        width = self.WIDTH
        items_h = max(60, len(receipt.lines) * self.LINE_H + 20)
        height = self.HEADER_H + items_h + self.FOOTER_H

        img = Image.new('RGB', (width, height), color=(255, 255, 255))
        draw = ImageDraw.Draw(img)

        f_head = self._load_font(24)
        f_body = self._load_font(14)
        f_mono = self._load_font(12)

        x = 30
        right = width - x
        col_total = right
        col_price = right - 110
        col_qty = col_price - 90

        y = 24
        draw.text((x, y), "Receipt", font=f_head, fill=(20, 20, 20))
        y += 36
        draw.text((x, y), f"Store {self.settings.store_id} / POS {self.settings.terminal_id}",
                  font=f_body, fill=(60, 60, 60))
        y += 22
        draw.text((x, y), f"No.: {receipt.number}", font=f_body, fill=(0, 0, 0))
        y += 20
        draw.text((x, y), f"Date: {receipt.created_at:%Y-%m-%d %H:%M:%S}", font=f_body, fill=(0, 0, 0))
        y += 28

        draw.line((x, y, right, y), fill=(200, 200, 200), width=1)
        y += 8
        draw.text((x, y), "Item", font=f_mono, fill=(0, 0, 0))
        for label, col in (("Qty", col_qty), ("Price", col_price), ("Total", col_total)):
            draw.text((col - self._text_width(draw, label, f_mono), y), label, font=f_mono, fill=(0, 0, 0))
        y += 20

        for line in receipt.lines:
            draw.text((x, y), line.name, font=f_mono, fill=(20, 20, 20))
            for text, col in ((str(line.quantity), col_qty),
                              (f"{line.unit_price:,}", col_price),
                              (f"{line.line_total:,}", col_total)):
                draw.text((col - self._text_width(draw, text, f_mono), y), text, font=f_mono, fill=(20, 20, 20))
            y += self.LINE_H

        y = self.HEADER_H + items_h
        draw.line((x, y, right, y), fill=(200, 200, 200), width=1)
        y += 12
        totals = [
            f"Subtotal: {receipt.subtotal:,}",
            f"Tax ({self.settings.tax_percent}%): {receipt.tax:,}",
            f"Total: {receipt.total:,}",
        ]
        for txt in totals:
            color = (0, 100, 0) if txt.startswith("Total") else (0, 0, 0)
            draw.text((right - self._text_width(draw, txt, f_body), y), txt, font=f_body, fill=color)
            y += self.LINE_H

        img.save(png_path)
        logger.info("receipt written to %s", png_path)
        return png_path
