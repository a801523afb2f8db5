"""HTML mail templates (jinja2, autoescaped)."""

EVENT_TEMPLATE = """\
<html>
<body style="font-family:Segoe UI,Arial,sans-serif;background:#f7f7f7;padding:24px;">
  <div style="max-width:520px;margin:auto;background:#fff;border-radius:8px;box-shadow:0 2px 8px #0001;padding:24px;">
    <h2 style="color:#d32f2f;margin-top:0;">🗑️ Fichier supprimé détecté</h2>
    <p><strong>Horodatage :</strong> {{ timestamp }}</p>
    <p><strong>Nom du fichier :</strong> {{ event.name }}</p>
    <p><strong>Chemin :</strong> {{ event.path }}</p>
    <p><strong>Dossier parent :</strong> {{ parent }}</p>
    <p><strong>Supprimé par :</strong> {{ event.actor }}</p>
    <p><strong>Plateforme :</strong> {{ platform }}</p>
    <hr style="margin:24px 0;">
    <p style="color:#888;font-size:13px;">Ce message a été généré automatiquement par <b>WhoReapedWhat</b>.</p>
  </div>
</body>
</html>
"""

DIGEST_TEMPLATE = """\
<html>
<body style="font-family:Segoe UI,Arial,sans-serif;background:#f7f7f7;padding:24px;">
  <div style="max-width:760px;margin:auto;background:#fff;border-radius:8px;box-shadow:0 2px 8px #0001;padding:24px;">
    <h2 style="color:#d32f2f;margin-top:0;">🗑️ {{ count }} fichier(s) supprimé(s) le {{ day }}</h2>
    <table style="width:100%;border-collapse:collapse;font-size:14px;">
      <thead>
        <tr style="background:#eee;text-align:left;">
          <th style="padding:6px;">Nom</th>
          <th style="padding:6px;">Chemin</th>
          <th style="padding:6px;">Supprimé par</th>
          <th style="padding:6px;">Heure</th>
        </tr>
      </thead>
      <tbody>
{% for row in rows %}
        <tr>
          <td style="padding:6px;border-top:1px solid #ddd;">{{ row.name }}</td>
          <td style="padding:6px;border-top:1px solid #ddd;">{{ row.path }}</td>
          <td style="padding:6px;border-top:1px solid #ddd;">{{ row.actor }}</td>
          <td style="padding:6px;border-top:1px solid #ddd;">{{ row.time }}</td>
        </tr>
{% endfor %}
      </tbody>
    </table>
    <hr style="margin:24px 0;">
    <p style="color:#888;font-size:13px;">Ce message a été généré automatiquement par <b>WhoReapedWhat</b>.</p>
  </div>
</body>
</html>
"""
