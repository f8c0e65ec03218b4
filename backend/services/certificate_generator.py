import os
from flask import current_app
from reportlab.pdfgen import canvas
from reportlab.lib.pagesizes import letter, landscape

TEAL = (0.06, 0.43, 0.46)


class CertificateGenerator:
    """Renders completion certificates as PDF files under CERTIFICATE_FOLDER."""

    @staticmethod
    def file_path(code):
        return os.path.join(current_app.config["CERTIFICATE_FOLDER"], f"{code}.pdf")

    @staticmethod
    def public_url(code):
        prefix = current_app.config["CERTIFICATE_URL_PREFIX"].rstrip("/")
        return f"{prefix}/{code}.pdf"

    @staticmethod
    def generate(participant_name, quiz_title, issued_on, code):
        """Write the certificate and return its public URL, or None on failure."""
        try:
            os.makedirs(current_app.config["CERTIFICATE_FOLDER"], exist_ok=True)
            path = CertificateGenerator.file_path(code)
            CertificateGenerator._draw(path, participant_name, quiz_title, issued_on, code)
        except OSError:
            current_app.logger.exception("Failed to generate certificate %s", code)
            return None
        return CertificateGenerator.public_url(code)

    @staticmethod
    def _draw(path, participant_name, quiz_title, issued_on, code):
        c = canvas.Canvas(path, pagesize=landscape(letter))
        width, height = landscape(letter)

        # Borders
        c.setStrokeColorRGB(*TEAL)
        c.setLineWidth(10)
        c.rect(30, 30, width - 60, height - 60, stroke=1, fill=0)
        c.setStrokeColorRGB(0.8, 0.8, 0.8)
        c.setLineWidth(2)
        c.rect(50, 50, width - 100, height - 100, stroke=1, fill=0)

        c.setFont("Helvetica-Bold", 32)
        c.setFillColorRGB(*TEAL)
        c.drawCentredString(width / 2, height - 120, "CERTIFICATE OF ACHIEVEMENT")

        c.setFont("Helvetica", 16)
        c.setFillColorRGB(0, 0, 0)
        c.drawCentredString(width / 2, height - 150, current_app.config.get("CERTIFICATE_ISSUER", ""))

        c.setStrokeColorRGB(*TEAL)
        c.setLineWidth(2)
        c.line(150, height - 170, width - 150, height - 170)

        c.setFont("Helvetica", 14)
        c.drawCentredString(width / 2, height - 220, "This certifies that")

        c.setFont("Helvetica-Bold", 28)
        c.setFillColorRGB(*TEAL)
        c.drawCentredString(width / 2, height - 260, participant_name)

        c.setFont("Helvetica", 14)
        c.setFillColorRGB(0, 0, 0)
        c.drawCentredString(width / 2, height - 300, "has successfully passed")

        c.setFont("Helvetica-Bold", 18)
        c.drawCentredString(width / 2, height - 330, quiz_title)

        c.setFont("Helvetica", 12)
        c.drawCentredString(width / 2, 110, f"Issued on {issued_on.strftime('%B %d, %Y')}")
        c.setFont("Helvetica", 9)
        c.setFillColorRGB(0.4, 0.4, 0.4)
        c.drawCentredString(width / 2, 90, f"Certificate code: {code}")

        c.showPage()
        c.save()
