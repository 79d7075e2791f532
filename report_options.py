"""
Report options shared by both renderers: organization branding, the style
table, and the report-type vocabulary.
"""

REPORT_TYPES = ('combined', 'messaging', 'action')
EXPORT_FORMATS = ('docx', 'pdf')

# A "separate" export produces the messaging guide and action plan as two files.
REPORT_LAYOUTS = {
    'combined': ('combined',),
    'separate': ('messaging', 'action'),
}

REPORT_HEADINGS = {
    'combined': 'Campaign Report',
    'messaging': 'Campaign Messaging Guide',
    'action': 'Campaign Action Plan',
}

PNG_SIGNATURE = b'\x89PNG\r\n\x1a\n'
JPEG_SIGNATURE = b'\xff\xd8\xff'

# JSON key → Branding attribute
BRANDING_FIELDS = {
    'organizationName': 'organization_name',
    'contactPerson': 'contact_person',
    'email': 'email',
    'phone': 'phone',
    'website': 'website',
}


def report_heading(report_type):
    """Cover heading for a report type."""
    return REPORT_HEADINGS[report_type]


def logo_image_type(data):
    """'png' or 'jpeg' from the image's magic bytes, None if unrecognized."""
    if not data:
        return None
    if data.startswith(PNG_SIGNATURE):
        return 'png'
    if data.startswith(JPEG_SIGNATURE):
        return 'jpeg'
    return None


class Branding:
    """Organization details printed on the report cover."""

    def __init__(self, organization_name, contact_person='', email='', phone='',
                 website='', logo=None):
        self.organization_name = organization_name or ''
        self.contact_person = contact_person or ''
        self.email = email or ''
        self.phone = phone or ''
        self.website = website or ''
        self.logo = logo

    @classmethod
    def from_dict(cls, data, logo=None):
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError('Branding must be an object.')
        fields = {}
        for key, attr in BRANDING_FIELDS.items():
            value = data.get(key) or ''
            if not isinstance(value, str):
                raise ValueError(f"Branding field '{key}' must be text.")
            fields[attr] = value
        return cls(logo=logo, **fields)

    def validate(self):
        if not self.organization_name.strip():
            raise ValueError('Please enter your organization name.')
        if self.logo is not None and logo_image_type(self.logo) is None:
            raise ValueError('Logo must be a PNG or JPEG image.')
        return self

    def contact_lines(self):
        """Non-empty contact lines in cover order."""
        lines = [
            self.organization_name,
            self.contact_person,
            self.email,
            self.phone,
            self.website,
        ]
        return [line for line in lines if line]

    def __repr__(self):
        return f"Branding('{self.organization_name}', logo={'yes' if self.logo else 'no'})"


class ReportStyle:
    """
    Presentation constants handed to a renderer. Colours are RGB tuples,
    sizes are points, margin is millimetres.
    """

    def __init__(self, font_family='Helvetica', title_size=24, section_size=16,
                 heading_size=13, body_size=11, table_size=10,
                 primary_color=(43, 87, 151), text_color=(51, 51, 51),
                 table_header_fill=(43, 87, 151), table_header_text=(255, 255, 255),
                 table_body_fill=(240, 244, 250), table_border_color=(180, 190, 205),
                 page_margin=20):
        self.font_family = font_family
        self.title_size = title_size
        self.section_size = section_size
        self.heading_size = heading_size
        self.body_size = body_size
        self.table_size = table_size
        self.primary_color = primary_color
        self.text_color = text_color
        self.table_header_fill = table_header_fill
        self.table_header_text = table_header_text
        self.table_body_fill = table_body_fill
        self.table_border_color = table_border_color
        self.page_margin = page_margin

    def heading_size_for(self, level):
        """Block headings shrink one point per level below the first."""
        return max(self.body_size, self.heading_size - (level - 1))

    @staticmethod
    def hex(color):
        """(r, g, b) → 'RRGGBB' as WordprocessingML expects."""
        return '{:02X}{:02X}{:02X}'.format(*color)


DEFAULT_STYLE = ReportStyle()
