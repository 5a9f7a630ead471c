"""
The chapter tree.

`entities` are the numbered, labelled constructs (headings, citations, figures, code blocks...),
`nodes` are everything else the tree is built from, `registry` maps labels to entities
and `dfs` walks the tree.
"""
