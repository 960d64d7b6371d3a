"""
Rendering Context

Responsibilities:
- Launches and tears down the headless browser session
- Renders the master document to HTML and prints it to PDF
- Converts diagrams (Chart.js, mermaid, flowchart.js, vega-lite) to images
- Transpiles CSV tables and optimises SVG files

Owns: the browser, the shared page, every artifact written to disk
Never: Decides when a conversion runs
"""
