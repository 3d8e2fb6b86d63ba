"""
Card Generator Module - Guest Check-in System

This module renders printable badge cards for invitees. A card carries the
guest type band, the guest's name and the QR code the entrance scanner
reads. Cards are exported as PNG images or PDF documents, one card per
file or a whole sheet of cards for printing.

Features:
- Badge card rendering with guest type styling
- PNG export
- Single card PDF export
- Multi-card PDF sheet (2x3 grid per A4 page)
"""

import io
import re
import logging
from typing import List, Tuple

from PIL import Image, ImageDraw, ImageFont
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from guestlist.modules.models import Invitee
from guestlist.modules.qr_generator import QRGenerator

# PROMOTED cards: dark vertical gradient with a gold band
PROMOTED_TOP = (10, 10, 10)
PROMOTED_BOTTOM = (17, 24, 39)
PROMOTED_ACCENT = (212, 175, 55)

# INVITED cards: flat navy
INVITED_BACKGROUND = (15, 23, 42)
INVITED_ACCENT = (148, 163, 184)

TEXT_COLOR = (255, 255, 255)


def card_filename(invitee: Invitee, extension: str) -> str:
    """Download name: full name with whitespace runs replaced by underscores."""
    base = re.sub(r'\s+', '_', invitee.full_name.strip()) or invitee.id
    return f"{base}.{extension}"


class CardGenerator:
    """
    Badge card renderer for the guest list.
    """

    def __init__(self, qr_generator: QRGenerator, width: int = 640,
                 height: int = 960, qr_size: int = 300):
        self.qr_generator = qr_generator
        self.width = width
        self.height = height
        self.qr_size = qr_size
        self.logger = logging.getLogger(__name__)

    def _load_fonts(self) -> Tuple[ImageFont.ImageFont, ImageFont.ImageFont]:
        # Try a scalable font first, fall back to Pillow's default
        try:
            return (ImageFont.truetype("DejaVuSans-Bold.ttf", 44),
                    ImageFont.truetype("DejaVuSans.ttf", 26))
        except (IOError, OSError):
            return ImageFont.load_default(), ImageFont.load_default()

    def _background(self, invitee: Invitee) -> Image.Image:
        if not invitee.is_promoted:
            return Image.new('RGB', (self.width, self.height), INVITED_BACKGROUND)

        card = Image.new('RGB', (self.width, self.height), PROMOTED_TOP)
        draw = ImageDraw.Draw(card)
        for y in range(self.height):
            ratio = y / max(self.height - 1, 1)
            color = tuple(
                int(top + (bottom - top) * ratio)
                for top, bottom in zip(PROMOTED_TOP, PROMOTED_BOTTOM)
            )
            draw.line([(0, y), (self.width, y)], fill=color)
        return card

    @staticmethod
    def _wrap(draw: ImageDraw.ImageDraw, text: str, font, max_width: int) -> List[str]:
        lines, current = [], ''
        for word in text.split():
            candidate = f"{current} {word}".strip()
            bbox = draw.textbbox((0, 0), candidate, font=font)
            if bbox[2] - bbox[0] <= max_width or not current:
                current = candidate
            else:
                lines.append(current)
                current = word
        if current:
            lines.append(current)
        return lines

    def _draw_centered(self, draw: ImageDraw.ImageDraw, y: int, text: str, font, fill) -> int:
        bbox = draw.textbbox((0, 0), text, font=font)
        text_width = bbox[2] - bbox[0]
        draw.text(((self.width - text_width) // 2, y), text, fill=fill, font=font)
        return bbox[3] - bbox[1]

    def render_card(self, invitee: Invitee) -> Image.Image:
        """
        Draw the badge card for an invitee.

        Args:
            invitee (Invitee): Guest to render

        Returns:
            Image.Image: RGB card image
        """
        card = self._background(invitee)
        draw = ImageDraw.Draw(card)
        font_name, font_small = self._load_fonts()
        accent = PROMOTED_ACCENT if invitee.is_promoted else INVITED_ACCENT

        # Guest type band
        draw.rectangle([0, 40, self.width, 100], outline=accent, width=2)
        self._draw_centered(draw, 55, ' '.join(invitee.guest_type.value), font_small, accent)

        # Name, wrapped to the card width
        y = 170
        for line in self._wrap(draw, invitee.full_name, font_name, self.width - 80):
            y += self._draw_centered(draw, y, line, font_name, TEXT_COLOR) + 14

        # QR code on a white tile so it stays scannable on dark cards
        qr_img = self.qr_generator.make_image(invitee.effective_qr_payload())
        qr_img = qr_img.resize((self.qr_size, self.qr_size), Image.NEAREST)
        tile_size = self.qr_size + 24
        tile_x = (self.width - tile_size) // 2
        tile_y = self.height - tile_size - 80
        draw.rounded_rectangle(
            [tile_x, tile_y, tile_x + tile_size, tile_y + tile_size],
            radius=16, fill=(255, 255, 255)
        )
        card.paste(qr_img, (tile_x + 12, tile_y + 12))

        if invitee.national_id:
            self._draw_centered(draw, self.height - 50, invitee.national_id, font_small, accent)

        return card

    def render_png(self, invitee: Invitee) -> bytes:
        buffer = io.BytesIO()
        self.render_card(invitee).save(buffer, format='PNG')
        return buffer.getvalue()

    def render_pdf(self, invitee: Invitee) -> bytes:
        """
        Export one card as a portrait A4 PDF, scaled to the page width.

        Args:
            invitee (Invitee): Guest to render

        Returns:
            bytes: PDF document
        """
        page_width, page_height = A4
        buffer = io.BytesIO()
        pdf = canvas.Canvas(buffer, pagesize=A4)
        pdf.setTitle(invitee.full_name)

        draw_width = page_width
        draw_height = self.height * page_width / self.width
        if draw_height > page_height:
            draw_height = page_height
            draw_width = self.width * page_height / self.height

        img_reader = ImageReader(self.render_card(invitee))
        pdf.drawImage(img_reader, 0, page_height - draw_height,
                      width=draw_width, height=draw_height)
        pdf.showPage()
        pdf.save()

        self.logger.info(f"Card PDF generated for invitee {invitee.id}")
        return buffer.getvalue()

    def render_sheet_pdf(self, invitees: List[Invitee]) -> bytes:
        """
        Create a PDF containing every card for printing.

        Args:
            invitees (List[Invitee]): Guests to include

        Returns:
            bytes: PDF document with six cards per page
        """
        width, height = A4
        buffer = io.BytesIO()
        pdf = canvas.Canvas(buffer, pagesize=A4)

        # Cards per page (2x3 grid)
        cards_per_row = 2
        cards_per_col = 3
        cards_per_page = cards_per_row * cards_per_col

        slot_width = width / cards_per_row
        slot_height = height / cards_per_col
        scale = min(slot_width * 0.9 / self.width, slot_height * 0.9 / self.height)
        card_width = self.width * scale
        card_height = self.height * scale

        for i, invitee in enumerate(invitees):
            if i > 0 and i % cards_per_page == 0:
                pdf.showPage()  # New page

            row = (i % cards_per_page) // cards_per_row
            col = (i % cards_per_page) % cards_per_row

            x = col * slot_width + (slot_width - card_width) / 2
            y = height - (row + 1) * slot_height + (slot_height - card_height) / 2

            pdf.drawImage(ImageReader(self.render_card(invitee)), x, y,
                          width=card_width, height=card_height)

        pdf.showPage()
        pdf.save()

        self.logger.info(f"Card sheet PDF generated with {len(invitees)} cards")
        return buffer.getvalue()
