"""Beer-list views — filtering, grouping, bookmark links and rendering.

Learn: Everything here is pure with respect to the server: views take
a beer list plus explicit view/client state and return data or HTML.
The same code backs the /views/* HTTP fragments and ClientSession.
"""
