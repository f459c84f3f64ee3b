"""GTM workspace backend: workspaces with nested products, segments and personas."""
